"""
Document model for the retrieval system.

Single responsibility: Define the structure of documents
stored in and returned by document stores.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class Document:
    """
    A retrievable chunk of text.

    id is assigned by the store and stays empty until persisted.
    Search results carry the QUERY embedding, not the stored vector:
    the store never returns vectors from a similarity query.
    """
    id: str
    text: str
    source: str
    embedding: np.ndarray | None = None
    distance: float | None = None
    certainty: float | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "source": self.source,
            "distance": self.distance,
            "certainty": self.certainty,
        }
