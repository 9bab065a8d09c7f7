class CatalogError(Exception):
    """Base class for errors the HTTP layer turns into an error view."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    status_code = 404

    def __init__(self, kind: str, doc_id: str) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.doc_id = doc_id


class WorkflowNotImplemented(CatalogError):
    status_code = 501

    def __init__(self, action: str) -> None:
        super().__init__(f"NOT IMPLEMENTED: {action}")
        self.action = action
