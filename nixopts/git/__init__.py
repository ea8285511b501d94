"""Git helpers for fetching remote module trees."""

from .clone import AcquisitionError, RepositoryFetcher, prepare_path

__all__ = ["AcquisitionError", "RepositoryFetcher", "prepare_path"]
