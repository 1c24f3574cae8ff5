"""
Signature generators: turn a raw capture into the numeric vector the
binarizer consumes, plus the alternative hash signatures used by the
non-canonical matchers.
"""

import base64
import hashlib
from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np

from .errors import InvalidInput, SignatureError
from .tool_client import ToolClient


class ISignatureGenerator(ABC):
    """Abstract interface for signature providers."""

    @abstractmethod
    def generate(self, raw_image: bytes) -> List[float]:
        """Generate a real-valued signature for a captured image."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the length of generated signatures."""
        pass


class DeterministicHashSignatureGenerator(ISignatureGenerator):
    """Deterministic hash-based signatures for development and testing.

    The same bytes always yield the same vector, and different captures yield
    unrelated vectors, which is enough to exercise enrollment and recognition
    without a face model.
    """

    def __init__(self, dimension: int = 128):
        self.dimension = dimension

    def generate(self, raw_image: bytes) -> List[float]:
        if not raw_image:
            raise SignatureError("No content signal found in empty capture")

        vector = []
        counter = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(counter.to_bytes(4, "big") + raw_image).digest()
            for i in range(0, len(digest), 4):
                value = int.from_bytes(digest[i:i + 4], "big")
                # Map to [-1, 1] so the binarizer's zero threshold splits evenly
                vector.append((value / (2**32)) * 2 - 1)
            counter += 1

        return vector[:self.dimension]

    def get_dimension(self) -> int:
        return self.dimension


class RemoteSignatureGenerator(ISignatureGenerator):
    """Face embeddings from the tool server's ``embedding.generate`` tool."""

    def __init__(self, client: ToolClient, dimension: int = 128):
        self.client = client
        self.dimension = dimension

    def generate(self, raw_image: bytes) -> List[float]:
        if not raw_image:
            raise SignatureError("No face signal found in empty capture")

        result = self.client.call("embedding.generate", {"image": encode_image(raw_image)})
        embedding = result.get("embedding")
        if not isinstance(embedding, list) or not embedding:
            raise SignatureError(
                result.get("error") or "Failed to generate face embedding. Please ensure a clear face is visible."
            )
        try:
            return [float(value) for value in embedding]
        except (TypeError, ValueError):
            raise SignatureError("Tool server returned a non-numeric embedding")

    def get_dimension(self) -> int:
        return self.dimension


def encode_image(raw_image: bytes) -> str:
    return base64.b64encode(raw_image).decode("ascii")


def decode_image(image: str) -> bytes:
    """Decode a base64 image, accepting a ``data:<mime>;base64,`` prefix."""
    if not image or not image.strip():
        raise InvalidInput("Missing required field: image is required")

    payload = image.split(",", 1)[1] if image.startswith("data:") else image
    try:
        raw = base64.b64decode(payload, validate=True)
    except ValueError as e:
        raise InvalidInput(f"Invalid base64 image: {e}")

    if not raw:
        raise InvalidInput("Decoded image is empty")
    return raw


def average_hash(pixels: Sequence[Sequence[float]]) -> str:
    """Average hash of an already downscaled grayscale grid (typically 8x8).

    Bit ``i`` is '1' when pixel ``i`` (row-major) is brighter than the mean.
    """
    grid = np.asarray(pixels, dtype=np.float64).reshape(-1)
    if grid.size == 0:
        raise SignatureError("Cannot hash an empty image")
    mean = grid.mean()
    return "".join("1" if value > mean else "0" for value in grid)


def content_fingerprint(raw_image: bytes) -> str:
    """SHA-256 hex digest of the raw capture."""
    if not raw_image:
        raise SignatureError("Cannot fingerprint an empty capture")
    return hashlib.sha256(raw_image).hexdigest()
