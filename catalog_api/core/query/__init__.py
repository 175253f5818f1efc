from .models import Condition, PageRef, Pagination, QueryDescriptor, ResultEnvelope
from .paginator import paginate
from .translator import translate

__all__ = [
    "Condition",
    "PageRef",
    "Pagination",
    "QueryDescriptor",
    "ResultEnvelope",
    "paginate",
    "translate",
]
