from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import AdminRole
from ...api.deps import patient_permission
from ...services.patient_service import PatientService
from ...schemas.patient import (
    PatientCreate, PatientUpdate, PatientQuery, PatientEnvelope,
    PatientListResponse, PatientStatsResponse, MessageResponse
)

router = APIRouter(prefix="/admin/patients", tags=["Admin Patients"])

# Permission levels on the patients resource
READ, CREATE, UPDATE, DELETE = 1, 2, 3, 4

@router.post(
    "",
    response_model=PatientEnvelope,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(patient_permission(CREATE))]
)
async def create_patient(
    patient_data: PatientCreate,
    db: Session = Depends(get_db)
):
    """Create a patient record for any user with the Patient role."""
    patient_service = PatientService(db)
    return patient_service.create(patient_data)

@router.get(
    "",
    response_model=PatientListResponse,
    dependencies=[Depends(patient_permission(READ))]
)
async def list_patients(
    query: PatientQuery = Query(),
    db: Session = Depends(get_db)
):
    """List patients with search, blood-type filter, sorting and pagination."""
    patient_service = PatientService(db)
    return patient_service.find_all(query)

@router.get(
    "/stats",
    response_model=PatientStatsResponse,
    dependencies=[Depends(patient_permission(READ))]
)
async def get_patient_stats(db: Session = Depends(get_db)):
    """Aggregate patient statistics."""
    patient_service = PatientService(db)
    return patient_service.get_stats()

@router.get(
    "/{patient_id}",
    response_model=PatientEnvelope,
    response_model_exclude_unset=True,
    dependencies=[Depends(patient_permission(READ))]
)
async def get_patient(
    patient_id: str,
    db: Session = Depends(get_db)
):
    patient_service = PatientService(db)
    return patient_service.find_one(patient_id)

@router.patch(
    "/{patient_id}",
    response_model=PatientEnvelope,
    response_model_exclude_unset=True,
    dependencies=[Depends(patient_permission(UPDATE))]
)
async def update_patient(
    patient_id: str,
    patient_data: PatientUpdate,
    db: Session = Depends(get_db)
):
    patient_service = PatientService(db)
    return patient_service.update(patient_id, patient_data)

@router.delete(
    "/{patient_id}",
    response_model=MessageResponse,
    dependencies=[Depends(patient_permission(DELETE, AdminRole.SUPER_ADMIN))]
)
async def delete_patient(
    patient_id: str,
    db: Session = Depends(get_db)
):
    """Hard-delete a patient record (Super Admin only)."""
    patient_service = PatientService(db)
    return patient_service.remove(patient_id)
