"""Punchcard exceptions."""


class PunchcardError(Exception):
    """
    Structured exception for ledger operations.

    Usage:
        try:
            customer_service.accrue("bar-sole", customer_id)
        except PunchcardError as e:
            if e.code == "CUSTOMER_NOT_FOUND":
                handle_not_found()
    """

    _default_messages = {
        "CUSTOMER_NOT_FOUND": "Customer not found",
        "STORAGE_UNAVAILABLE": "Storage is unavailable",
        "BACKUP_INVALID": "Backup file is invalid or corrupted",
        "BACKUP_WRONG_TENANT": "Backup file belongs to another tenant",
        "INVALID_NAME": "Customer name must not be empty",
        "INVALID_POINTS": "Points must be an integer",
        "TENANT_REQUIRED": "Tenant id is required",
    }

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}
