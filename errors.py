"""Exceptions raised by the budget alert library."""


class BudgetAlertError(Exception):
    """Base class for every error raised by this package."""


class InvalidCurrency(BudgetAlertError, ValueError):
    """A currency code outside the supported set was supplied."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Unsupported currency: {code!r}")


class PersistenceFailure(BudgetAlertError):
    """Reading from or writing to storage failed."""


class DuplicateCategory(BudgetAlertError, ValueError):
    """A category with the same name already exists for that type."""

    def __init__(self, name, type_):
        self.name = name
        self.type = type_
        super().__init__(f"Category {name!r} already exists for {type_}")


class CategoryInUse(BudgetAlertError):
    """The category is referenced by transactions and cannot be deleted."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Category {name!r} is used in transactions and cannot be deleted")
