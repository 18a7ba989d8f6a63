"""Application services coordinating the domain with the store and feed."""
