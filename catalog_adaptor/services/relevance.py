import re
from enum import Enum
from typing import List, Optional, Set

from catalog_adaptor.domain.models.product import Product

_TOKEN = re.compile(r"[a-z0-9]+")

PHRASE_WEIGHT = 100.0
TITLE_WEIGHT = 10.0
ATTRIBUTE_WEIGHT = 5.0
DESCRIPTION_WEIGHT = 1.0


class SortOrder(str, Enum):
    """Result orderings accepted by the product listing."""
    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING = "rating"
    NONE = "none"


def tokenize(text: Optional[str]) -> List[str]:
    return _TOKEN.findall((text or "").lower())


def relevance_score(product: Product, query: str) -> float:
    """
    Score a product against a search query.

    Weights: exact title phrase 100, each title token 10, each brand or
    category token 5, each description token 1.
    """
    terms = tokenize(query)
    if not terms:
        return 0.0

    title = " ".join(tokenize(product.title))
    title_tokens: Set[str] = set(title.split())
    attribute_tokens = set(tokenize(product.brand)) | set(tokenize(product.category))
    description_tokens = set(tokenize(product.description))

    score = PHRASE_WEIGHT if " ".join(terms) in title else 0.0
    for term in terms:
        if term in title_tokens:
            score += TITLE_WEIGHT
        if term in attribute_tokens:
            score += ATTRIBUTE_WEIGHT
        if term in description_tokens:
            score += DESCRIPTION_WEIGHT
    return score


def sort_products(products: List[Product], sort: SortOrder, query: Optional[str] = None) -> List[Product]:
    """Return a new list in the requested order; ties keep their input order."""
    if sort == SortOrder.PRICE_ASC:
        return sorted(products, key=lambda p: p.price.amount)
    if sort == SortOrder.PRICE_DESC:
        return sorted(products, key=lambda p: p.price.amount, reverse=True)
    if sort == SortOrder.RATING:
        return sorted(products, key=lambda p: p.rating, reverse=True)
    if sort == SortOrder.RELEVANCE and query:
        return sorted(products, key=lambda p: relevance_score(p, query), reverse=True)
    return list(products)
