import json

import pytest
from fastapi.testclient import TestClient

from catalog_api.api.main import create_app
from catalog_api.config import Settings
from catalog_api.core.errors import ConfigurationError
from catalog_api.core.store.seed import load_seed_file

from conftest import TEST_SECRET, bearer, make_token

SEED_YAML = """
categories:
  - {id: k1, name: Kitchen}
products:
  - {id: q1, name: Kettle, price: 25, category: k1}
users:
  - {id: u-yaml, role: seller}
"""


def test_yaml_seed(tmp_path):
    p = tmp_path / "seed.yaml"
    p.write_text(SEED_YAML, encoding="utf-8")
    data = load_seed_file(p)
    assert data["categories"][0]["name"] == "Kitchen"
    assert data["users"] == [{"id": "u-yaml", "role": "seller"}]


def test_json_seed(tmp_path):
    p = tmp_path / "seed.json"
    p.write_text(json.dumps({"categories": [{"name": "A"}]}), encoding="utf-8")
    assert load_seed_file(p) == {"categories": [{"name": "A"}]}


def test_malformed_seed_is_configuration_error(tmp_path):
    p = tmp_path / "seed.yaml"
    p.write_text("categories: {name: not-a-list}", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_seed_file(p)


def test_missing_seed_file_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_seed_file(tmp_path / "absent.yaml")


def test_app_seeds_collections_and_identities(tmp_path):
    p = tmp_path / "seed.yaml"
    p.write_text(SEED_YAML, encoding="utf-8")
    c = TestClient(create_app(Settings(jwt_secret=TEST_SECRET, seed_file=p)))

    body = c.get("/api/v1/products").json()
    assert body["data"][0]["category"]["name"] == "Kitchen"

    # role comes from the seeded identity store, not the token claim
    r = c.post("/api/v1/categories", json={"name": "Garden"}, headers=bearer(make_token("u-yaml", "user")))
    assert r.status_code == 201
    r = c.post("/api/v1/categories", json={"name": "Garden"}, headers=bearer(make_token("stranger", "admin")))
    assert r.status_code == 401
