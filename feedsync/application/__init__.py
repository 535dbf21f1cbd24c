"""Application layer: feed store and synchronization use cases."""
