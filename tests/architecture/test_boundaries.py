from pytest_archon import archrule


def test_primitives_isolation() -> None:
    """
    Primitives layer is the lowest level.
    It must not import from domain, persistence, or convergence.
    """
    (
        archrule("primitives_isolation")
        .match("versioned_upsert.primitives*")
        .should_not_import("versioned_upsert.domain*")
        .should_not_import("versioned_upsert.persistence*")
        .should_not_import("versioned_upsert.convergence*")
        .check("versioned_upsert")
    )


def test_domain_isolation() -> None:
    """
    Domain layer holds proposals and outcomes only.
    It must not know how they are written or verified.
    """
    (
        archrule("domain_isolation")
        .match("versioned_upsert.domain*")
        .should_not_import("versioned_upsert.persistence*")
        .should_not_import("versioned_upsert.convergence*")
        .should_not_import("sqlalchemy*")
        .check("versioned_upsert")
    )


def test_persistence_layering() -> None:
    """
    Persistence can import from Domain and Primitives but not from Convergence.
    """
    (
        archrule("persistence_layering")
        .match("versioned_upsert.persistence*")
        .should_not_import("versioned_upsert.convergence*")
        .check("versioned_upsert")
    )
