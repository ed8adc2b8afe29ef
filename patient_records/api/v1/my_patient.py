from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import ServiceError, ErrorKind
from ...api.deps import get_current_user
from ...services.patient_service import PatientService
from ...schemas.patient import MyPatientCreate, PatientUpdate, PatientEnvelope
from ...models.user import User

router = APIRouter(prefix="/my-patient", tags=["My Patient Record"])

NO_RECORD_MESSAGE = "No patient record found. Please create one."

@router.post(
    "",
    response_model=PatientEnvelope,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED
)
async def create_my_patient_record(
    patient_data: MyPatientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create the caller's own patient record."""
    patient_service = PatientService(db)
    return patient_service.create(patient_data.for_user(current_user.id))

@router.get("", response_model=PatientEnvelope, response_model_exclude_unset=True)
async def get_my_patient_record(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get the caller's patient record; a missing record is not an error here."""
    patient_service = PatientService(db)
    try:
        return patient_service.find_by_user_id(current_user.id)
    except ServiceError as error:
        if error.kind is ErrorKind.NOT_FOUND:
            return PatientEnvelope(data=None, message=NO_RECORD_MESSAGE)
        raise

@router.patch("", response_model=PatientEnvelope, response_model_exclude_unset=True)
async def update_my_patient_record(
    patient_data: PatientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update the caller's own patient record."""
    patient_service = PatientService(db)
    return patient_service.update_by_user_id(current_user.id, patient_data)
