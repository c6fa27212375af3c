class CommissionError(Exception):
    """Base class for commission engine errors."""


class NoMembershipError(CommissionError):
    """The payee has no usable organization membership, so no split can be computed."""

    def __init__(self, payee_id: int, detail: str = ""):
        self.payee_id = payee_id
        message = f"Cannot compute commission: payee {payee_id} has no organization"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class CommissionSplitConfigError(CommissionError):
    """An override split is out of range or would push its organization's total past 100%."""
