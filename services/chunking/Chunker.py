"""Overlapping fixed-size word windows."""

import uuid

from shared.models.document import Chunk

DEFAULT_WINDOW_SIZE = 150  # words per chunk
DEFAULT_OVERLAP = 25       # words shared by consecutive chunks


class Chunker:
    """Splits plain text into overlapping word windows.

    For W words, window size S and overlap O the number of chunks is
    ceil(max(W - O, 0) / (S - O)), and at least one chunk for any W > 0.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE, overlap: int = DEFAULT_OVERLAP) -> None:
        if window_size < 1:
            raise ValueError(f"Chunk window size must be at least 1 word, got {window_size}.")
        if overlap < 0:
            raise ValueError(f"Chunk overlap must not be negative, got {overlap}.")
        if overlap >= window_size:
            raise ValueError(f"Chunk overlap ({overlap}) must be smaller than the window size ({window_size}).")
        self.window_size = window_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.window_size - self.overlap

    def chunk(self, text: str) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text (str): The extracted document text.

        Returns:
            list[Chunk]: Chunks in document order, chunk_index 0..n-1.
        """
        words = text.split()
        chunks: list[Chunk] = []
        start = 0
        while start < len(words):
            end = min(start + self.window_size, len(words))
            content = " ".join(words[start:end])
            # split() never yields empty words; kept for content that strips to nothing
            if content.strip():
                chunks.append(Chunk(
                    chunk_id=str(uuid.uuid4()),
                    content=content,
                    chunk_index=len(chunks),
                    word_count=end - start,
                    start_word_offset=start,
                    end_word_offset=end,
                ))
            if end >= len(words):
                break
            start += self.step
        return chunks
