"""HTTP routers for the Catalog Adaptor Service."""
