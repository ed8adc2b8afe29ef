from sqlalchemy import asc, desc, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, Query, contains_eager, joinedload
import logging

from ..core.exceptions import NotFoundError, BadRequestError, ConflictError
from ..core.security import UserRole
from ..models.patient import Patient
from ..models.user import User
from ..schemas.patient import (
    PatientCreate, PatientUpdate, PatientQuery, PatientResponse, PatientEnvelope,
    PatientListResponse, PaginationMeta, PatientStatsResponse, BloodTypeCount,
    MessageResponse, PatientSortField, SortOrder
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    PatientSortField.ID: Patient.id,
    PatientSortField.USER_ID: Patient.user_id,
    PatientSortField.MEDICAL_RECORD: Patient.medical_record,
    PatientSortField.BLOOD_TYPE: Patient.blood_type,
    PatientSortField.ALLERGIES: Patient.allergies,
    PatientSortField.CHRONIC_DISEASES: Patient.chronic_diseases,
    PatientSortField.EMERGENCY_CONTACT: Patient.emergency_contact,
    PatientSortField.EMERGENCY_PHONE: Patient.emergency_phone,
    PatientSortField.HEIGHT: Patient.height,
    PatientSortField.WEIGHT: Patient.weight,
    PatientSortField.CREATED_AT: Patient.created_at,
    PatientSortField.UPDATED_AT: Patient.updated_at,
}

def _contains(value: str) -> str:
    """LIKE pattern matching ``value`` literally anywhere in the column."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"

class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def _with_user(self) -> Query:
        return self.db.query(Patient).options(joinedload(Patient.user))

    def _active_patients(self) -> Query:
        """Patients whose owning user has not been soft-deleted."""
        return (
            self.db.query(Patient)
            .join(Patient.user)
            .filter(User.deleted_at.is_(None))
        )

    def create(self, data: PatientCreate) -> PatientEnvelope:
        """Create the patient record for ``data.user_id``."""
        user = self.db.query(User).filter(
            User.id == data.user_id,
            User.deleted_at.is_(None)
        ).first()

        if not user:
            raise NotFoundError(f'User with ID "{data.user_id}" not found')

        if user.role != UserRole.PATIENT:
            raise BadRequestError("User must have Patient role")

        existing_patient = self.db.query(Patient.id).filter(
            Patient.user_id == data.user_id
        ).first()

        if existing_patient:
            raise ConflictError("Patient record already exists for this user")

        patient = Patient(user_id=data.user_id, **data.model_dump(exclude={"user_id"}))
        self.db.add(patient)

        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent create for the same user
            self.db.rollback()
            raise ConflictError("Patient record already exists for this user")

        self.db.refresh(patient)
        logger.info(f"Created patient record {patient.id} for user {data.user_id}")

        return PatientEnvelope(
            message="Patient record created successfully",
            data=PatientResponse.model_validate(patient)
        )

    def find_all(self, query: PatientQuery) -> PatientListResponse:
        """Filtered, sorted page of patients plus pagination metadata."""
        patients_query = self._active_patients()

        if query.search:
            term = _contains(query.search)
            patients_query = patients_query.filter(or_(
                User.name.ilike(term, escape="\\"),
                User.email.ilike(term, escape="\\"),
                User.phone.ilike(term, escape="\\"),
            ))

        if query.blood_type:
            patients_query = patients_query.filter(Patient.blood_type == query.blood_type)

        direction = asc if query.sort_by == SortOrder.ASC else desc
        column = SORT_COLUMNS[query.sort_field]

        # The total rides along on every page row, so count and page come from one statement
        rows = (
            patients_query
            .add_columns(func.count().over().label("total"))
            .options(contains_eager(Patient.user))
            .order_by(direction(column), direction(Patient.id))
            .offset(query.offset)
            .limit(query.limit)
            .all()
        )

        if rows:
            total = rows[0].total
        elif query.offset:
            # Past the last page there are no rows to carry the total
            total = patients_query.count()
        else:
            total = 0

        return PatientListResponse(
            data=[PatientResponse.model_validate(patient) for patient, _ in rows],
            pagination=PaginationMeta.build(total, query.page, query.limit)
        )

    def get_stats(self) -> PatientStatsResponse:
        # One grouped statement; totals are summed from the groups so every figure agrees
        rows = (
            self.db.query(
                Patient.blood_type,
                func.count(Patient.id),
                func.count(Patient.medical_record)
            )
            .select_from(Patient)
            .join(Patient.user)
            .filter(User.deleted_at.is_(None))
            .group_by(Patient.blood_type)
            .all()
        )

        total_patients = sum(count for _, count, _ in rows)
        with_records = sum(with_record for _, _, with_record in rows)
        distribution = sorted(
            (blood_type, count) for blood_type, count, _ in rows
            if blood_type is not None
        )

        return PatientStatsResponse(
            total_patients=total_patients,
            patients_with_medical_records=with_records,
            patients_without_medical_records=total_patients - with_records,
            blood_type_distribution=[
                BloodTypeCount(blood_type=blood_type, count=count)
                for blood_type, count in distribution
            ]
        )

    def find_one(self, patient_id: str) -> PatientEnvelope:
        patient = self._with_user().filter(Patient.id == patient_id).first()

        if not patient:
            raise NotFoundError(f'Patient with ID "{patient_id}" not found')

        return PatientEnvelope(data=PatientResponse.model_validate(patient))

    def find_by_user_id(self, user_id: str) -> PatientEnvelope:
        patient = self._with_user().filter(Patient.user_id == user_id).first()

        if not patient:
            raise NotFoundError(f'Patient record not found for user "{user_id}"')

        return PatientEnvelope(data=PatientResponse.model_validate(patient))

    def update(self, patient_id: str, data: PatientUpdate) -> PatientEnvelope:
        """Apply the fields present in ``data`` to the patient record."""
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()

        if not patient:
            raise NotFoundError(f'Patient with ID "{patient_id}" not found')

        patch = data.to_patch()
        for field, value in patch.items():
            setattr(patient, field, value)

        self.db.commit()
        self.db.refresh(patient)
        logger.info(f"Updated patient record {patient_id}: {sorted(patch)}")

        return PatientEnvelope(
            message="Patient record updated successfully",
            data=PatientResponse.model_validate(patient)
        )

    def update_by_user_id(self, user_id: str, data: PatientUpdate) -> PatientEnvelope:
        existing_patient = self.db.query(Patient.id).filter(
            Patient.user_id == user_id
        ).first()

        if not existing_patient:
            raise NotFoundError(f'Patient record not found for user "{user_id}"')

        return self.update(existing_patient.id, data)

    def remove(self, patient_id: str) -> MessageResponse:
        """Hard-delete the patient record."""
        patient = self._with_user().filter(Patient.id == patient_id).first()

        if not patient:
            raise NotFoundError(f'Patient with ID "{patient_id}" not found')

        user_id, user_name = patient.user_id, patient.user.name
        self.db.delete(patient)
        self.db.commit()
        logger.info(f"Deleted patient record {patient_id} for user {user_id}")

        return MessageResponse(
            message=f'Patient record for "{user_name}" has been deleted successfully'
        )
