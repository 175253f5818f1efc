from catalog_api.api.main import create_app
from catalog_api.config import load_settings

settings = load_settings()
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
