"""Error hierarchy of the ingestion and retrieval pipeline.

Every error carries enough context (filename, collection, underlying cause)
to be diagnosed from the API response alone. Credentials are never part of
a message.
"""


class RetrievalError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        kind:        Stable machine-readable error name, e.g. "EmptyDocument".
        status_code: HTTP status the API layer answers with.
        filename:    Name of the affected upload, if any.
        collection:  Name of the affected collection, if any.
        cause:       The underlying exception, if any.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        collection: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.collection = collection
        self.cause = cause

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_detail(self) -> dict:
        """Returns the structured error body sent to API callers."""
        detail: dict = {"error": self.kind, "message": self.message}
        if self.filename is not None:
            detail["filename"] = self.filename
        if self.collection is not None:
            detail["collection"] = self.collection
        if self.cause is not None:
            detail["cause"] = str(self.cause)
        return detail


##########################################
############## USER ERRORS ###############
##########################################

class UnsupportedMediaType(RetrievalError):
    status_code = 415

    def __init__(self, media_type: str, filename: str | None = None) -> None:
        super().__init__(f"Unsupported media type '{media_type}'.", filename=filename)
        self.media_type = media_type


class EmptyDocument(RetrievalError):
    status_code = 400

    def __init__(self, filename: str) -> None:
        super().__init__(f"No text content found in '{filename}'.", filename=filename)


class NoChunksProduced(RetrievalError):
    status_code = 400

    def __init__(self, filename: str) -> None:
        super().__init__(f"Failed to create chunks from '{filename}'.", filename=filename)


##########################################
########### COLLABORATOR FAULTS ##########
##########################################

class ExtractionFailed(RetrievalError):
    """A parser library failed on the uploaded document."""

    status_code = 422

    def __init__(self, filename: str, cause: BaseException) -> None:
        super().__init__(f"Failed to extract text from '{filename}': {cause}", filename=filename, cause=cause)


class EmbeddingFailed(RetrievalError):
    """The embedding provider could not be reached or answered with an error."""

    status_code = 502

    def __init__(self, cause: BaseException | str) -> None:
        if isinstance(cause, BaseException):
            super().__init__(f"Embedding request failed: {cause}", cause=cause)
        else:
            super().__init__(f"Embedding request failed: {cause}")


class EmbeddingDimensionMismatch(EmbeddingFailed):
    """The provider returned a vector whose length differs from the collection's vector size."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"expected vector of size {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class CollectionProvisionFailed(RetrievalError):
    status_code = 502

    def __init__(self, collection: str, cause: BaseException) -> None:
        super().__init__(f"Failed to provision collection '{collection}': {cause}", collection=collection, cause=cause)


class VectorStoreUnavailable(RetrievalError):
    """The vector store rejected a request or could not be reached."""

    status_code = 502

    def __init__(self, collection: str | None, detail: str, cause: BaseException | None = None) -> None:
        target = f" for collection '{collection}'" if collection else ""
        super().__init__(f"Vector store request failed{target}: {detail}", collection=collection, cause=cause)
