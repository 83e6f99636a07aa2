"""
Adapter implementations package.
This package contains the concrete vendor adapters, grouped by domain.
"""

from catalog_adaptor.adapters.implementations.ecommerce import (
    AliExpressAdaptor,
    AmazonAdaptor,
    BestBuyAdaptor,
    DummyJSONAdaptor,
    EbayAdaptor,
    EtsyAdaptor,
    FakeStoreAdaptor,
    RealTimeAdaptor,
    TaobaoAdaptor,
)

# Mapping of adapter names to their implementation classes.
# Order is the order adapters are built and listed in.
ADAPTOR_IMPLEMENTATIONS = {
    adaptor.name: adaptor
    for adaptor in (
        DummyJSONAdaptor,
        FakeStoreAdaptor,
        EbayAdaptor,
        BestBuyAdaptor,
        EtsyAdaptor,
        AmazonAdaptor,
        AliExpressAdaptor,
        RealTimeAdaptor,
        TaobaoAdaptor,
    )
}

__all__ = [
    "AliExpressAdaptor",
    "AmazonAdaptor",
    "BestBuyAdaptor",
    "DummyJSONAdaptor",
    "EbayAdaptor",
    "EtsyAdaptor",
    "FakeStoreAdaptor",
    "RealTimeAdaptor",
    "TaobaoAdaptor",
    "ADAPTOR_IMPLEMENTATIONS",
]
