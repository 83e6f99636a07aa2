"""
E-commerce vendor adapters.
Exports one adapter class (and its normalizer) per supported product source.
"""

from catalog_adaptor.adapters.implementations.ecommerce.aliexpress import AliExpressAdaptor, AliExpressNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.amazon import AmazonAdaptor, AmazonNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.bestbuy import BestBuyAdaptor, BestBuyNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.dummyjson import DummyJSONAdaptor, DummyJSONNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.ebay import EbayAdaptor, EbayNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.etsy import EtsyAdaptor, EtsyNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.fakestore import FakeStoreAdaptor, FakeStoreNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.realtime import RealTimeAdaptor, RealTimeNormalizer
from catalog_adaptor.adapters.implementations.ecommerce.taobao import TaobaoAdaptor, TaobaoNormalizer

__all__ = [
    # Adaptor classes
    "AliExpressAdaptor",
    "AmazonAdaptor",
    "BestBuyAdaptor",
    "DummyJSONAdaptor",
    "EbayAdaptor",
    "EtsyAdaptor",
    "FakeStoreAdaptor",
    "RealTimeAdaptor",
    "TaobaoAdaptor",

    # Normalizers
    "AliExpressNormalizer",
    "AmazonNormalizer",
    "BestBuyNormalizer",
    "DummyJSONNormalizer",
    "EbayNormalizer",
    "EtsyNormalizer",
    "FakeStoreNormalizer",
    "RealTimeNormalizer",
    "TaobaoNormalizer",
]
