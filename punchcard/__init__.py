"""
Django Punchcard - Stamp-card loyalty with single-use presentation credentials.

Usage:
    from punchcard import CredentialIssuer, ScanValidator
    from punchcard.services import customer as customer_service

    customer = customer_service.register("bar-sole", "Mario Rossi")
    credential = CredentialIssuer.issue(customer, "bar-sole")

    # On the scanning terminal, with the bytes read from the code:
    outcome = ScanValidator().validate(raw_bytes, "bar-sole")
    if outcome.accepted:
        show(outcome.message)
    else:
        show(outcome.reason.label)
"""


def __getattr__(name):
    if name == "CredentialIssuer":
        from punchcard.credentials import CredentialIssuer

        return CredentialIssuer
    if name == "ScanValidator":
        from punchcard.scan import ScanValidator

        return ScanValidator
    if name == "TokenGuard":
        from punchcard.guard import TokenGuard

        return TokenGuard
    if name == "RejectionReason":
        from punchcard.gates import RejectionReason

        return RejectionReason
    if name == "PunchcardError":
        from punchcard.exceptions import PunchcardError

        return PunchcardError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["CredentialIssuer", "ScanValidator", "TokenGuard", "RejectionReason", "PunchcardError"]
__version__ = "0.1.0"
