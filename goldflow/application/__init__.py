"""Application layer: transactional use cases over the production domain."""
