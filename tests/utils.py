from patient_records.core.config import settings
from patient_records.core.security import create_access_token, ADMIN_ACCESS_TOKEN_TYPE

API = settings.API_PREFIX

def user_headers(user):
    token = create_access_token({"sub": user.id, "email": user.email, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}

def admin_headers(admin):
    token = create_access_token(
        {"sub": admin.id, "email": admin.email, "role": admin.role.value},
        token_type=ADMIN_ACCESS_TOKEN_TYPE
    )
    return {"Authorization": f"Bearer {token}"}
