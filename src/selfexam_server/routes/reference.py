"""Reference data endpoints — the exam questionnaire and self-check steps.

Read-only views of the catalog loaded from ``v1/``.  Text is returned as
i18n keys; localisation happens in the client.
"""

from fastapi import APIRouter, Depends

from selfexam_rulesets.catalog import CatalogStore
from selfexam_rulesets.models import Section, SelfCheckStep

from selfexam_server.dependencies import get_catalog

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/sections")
def list_sections(
    catalog: CatalogStore = Depends(get_catalog),
) -> list[Section]:
    """Return the exam sections with their questions, in catalog order."""
    return catalog.sections


@router.get("/steps")
def list_steps(
    catalog: CatalogStore = Depends(get_catalog),
) -> list[SelfCheckStep]:
    """Return the self-check steps with their instruction pages."""
    return catalog.steps
