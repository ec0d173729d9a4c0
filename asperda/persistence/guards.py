from __future__ import annotations


class TenantPredicateError(RuntimeError):
    # Surface tenant-scoped queries built without a company id.
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def require_company_id(company_id: str | None) -> str:
    # Tenant-scoped reads and writes never run without a company predicate.
    if not company_id:
        raise TenantPredicateError("Tenant predicate required but company_id is missing")
    return company_id


def company_predicate(model, company_id: str | None) -> object:
    # Build company predicates through one helper so every tenant query is guarded.
    return model.company_id == require_company_id(company_id)
