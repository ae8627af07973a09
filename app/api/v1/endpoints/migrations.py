"""Admin-only appointment data migration endpoints."""

from fastapi import APIRouter, Query, status

from app.dependencies import AdminUser, MigrationServiceDep
from app.schemas.migrations import (
    MigrationPolicy,
    MigrationRunResponse,
    PricingTableResponse,
    ServicePriceResponse,
)

router = APIRouter(prefix="/admin/migrations", tags=["Admin"])


@router.post(
    "/appointments/user-data",
    response_model=MigrationRunResponse,
    status_code=status.HTTP_200_OK,
    summary="Backfill patient name, email and phone on appointments (admin only)",
)
async def migrate_appointment_user_data(
    admin_user: AdminUser,
    service: MigrationServiceDep,
    dry_run: bool = Query(False, description="Report changes without writing them"),
) -> MigrationRunResponse:
    """
    Match every appointment to a user and fill in missing patient details.

    Appointments that already have a name, email and phone are skipped. A
    failed write is reported for that appointment; the run carries on.

    Requires admin role.

    Args:
        admin_user: Authenticated admin user
        service: Migration service
        dry_run: Report changes without writing them

    Returns:
        Run summary and per-appointment results
    """
    run = await service.run(MigrationPolicy.USER_DATA, dry_run=dry_run)
    return MigrationRunResponse.model_validate(run.model_dump())


@router.post(
    "/appointments/pricing",
    response_model=MigrationRunResponse,
    status_code=status.HTTP_200_OK,
    summary="Backfill amount and service category on appointments (admin only)",
)
async def migrate_appointment_pricing(
    admin_user: AdminUser,
    service: MigrationServiceDep,
    dry_run: bool = Query(False, description="Report changes without writing them"),
) -> MigrationRunResponse:
    """
    Fill in missing amounts and service categories from the service price list.

    Requires admin role.
    """
    run = await service.run(MigrationPolicy.PRICING, dry_run=dry_run)
    return MigrationRunResponse.model_validate(run.model_dump())


@router.get(
    "/pricing",
    response_model=PricingTableResponse,
    summary="Service price list used by the pricing backfill (admin only)",
)
async def get_pricing_table(
    admin_user: AdminUser,
    service: MigrationServiceDep,
) -> PricingTableResponse:
    """Return the effective price list, including configured overrides."""
    return PricingTableResponse(
        services=[
            ServicePriceResponse(service_name=name, amount=price.amount, category=price.category)
            for name, price in sorted(service.pricing.items())
        ],
        default_amount=service.default_amount,
        default_category=service.default_category,
    )
