"""
Unit tests for admin authentication service
"""
import pytest
import pytest_asyncio
from datetime import timedelta
from uuid import uuid4

from services.auth import AuthService
from models.user import UserRole
from schemas.auth import AdminSignup, AdminLogin, AdminProfileUpdate, PasswordChange
from core.exceptions import AuthenticationException, AuthorizationException, ValidationException
from core.utils.auth.jwt_auth import JWTManager

ADMIN_PASSWORD = "adminpass123"


class TestAuthService:

    @pytest_asyncio.fixture
    async def auth_service(self, db_session):
        return AuthService(db_session)

    @pytest.fixture
    def signup_data(self):
        return AdminSignup(
            name="Ada Admin",
            email="Ada@Example.com",
            password="secret123",
            company_name="Oahse",
            phone="+2348012345678",
        )

    @pytest.mark.asyncio
    async def test_signup_creates_unapproved_user(self, auth_service, signup_data):
        auth = await auth_service.signup(signup_data)

        assert auth.user.email == "ada@example.com"
        assert auth.user.role == UserRole.USER
        assert auth.user.approved is False
        assert auth.user.company_name == "Oahse"
        assert auth.token_type == "bearer"
        assert JWTManager().get_user_id_from_token(auth.access_token) == str(auth.user.id)

        user = await auth_service.get_user_by_email("ada@example.com")
        assert user.hashed_password != "secret123"
        assert auth_service.password_manager.verify_password("secret123", user.hashed_password)

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, auth_service, signup_data):
        await auth_service.signup(signup_data)

        with pytest.raises(ValidationException) as exc_info:
            await auth_service.signup(signup_data.model_copy(update={"email": "ADA@example.com"}))

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_login_success(self, auth_service, admin_user):
        auth = await auth_service.login(AdminLogin(email="Admin@Example.com", password=ADMIN_PASSWORD))

        assert auth.user.id == admin_user.id
        assert auth.user.last_login is not None
        assert JWTManager().verify_token(auth.access_token)["role"] == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, auth_service, admin_user):
        with pytest.raises(ValidationException) as exc_info:
            await auth_service.login(AdminLogin(email=admin_user.email, password="wrong-password"))

        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, auth_service):
        with pytest.raises(ValidationException) as exc_info:
            await auth_service.login(AdminLogin(email="nobody@example.com", password="whatever"))

        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_unapproved(self, auth_service, make_user):
        await make_user("pending@example.com", role=UserRole.ADMIN, approved=False)

        with pytest.raises(ValidationException) as exc_info:
            await auth_service.login(AdminLogin(email="pending@example.com", password=ADMIN_PASSWORD))

        assert exc_info.value.status_code == 400
        assert "not approved" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_login_non_admin(self, auth_service, regular_user):
        with pytest.raises(AuthorizationException) as exc_info:
            await auth_service.login(AdminLogin(email=regular_user.email, password=ADMIN_PASSWORD))

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_get_current_user(self, auth_service, admin_user):
        token = auth_service.create_access_token(admin_user)

        user = await auth_service.get_current_user(token)

        assert user.id == admin_user.id

    @pytest.mark.asyncio
    async def test_get_current_user_without_token(self, auth_service):
        with pytest.raises(AuthenticationException) as exc_info:
            await auth_service.get_current_user(None)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_get_current_user_invalid_token(self, auth_service):
        with pytest.raises(AuthenticationException):
            await auth_service.get_current_user("not-a-jwt")

    @pytest.mark.asyncio
    async def test_get_current_user_expired_token(self, auth_service, admin_user):
        token = auth_service.create_access_token(admin_user, expires_delta=timedelta(seconds=-1))

        with pytest.raises(AuthenticationException):
            await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_get_current_user_unknown_or_malformed_subject(self, auth_service):
        jwt_manager = JWTManager()
        for subject in (str(uuid4()), "not-a-uuid"):
            token = jwt_manager.create_access_token({"sub": subject})
            with pytest.raises(AuthenticationException):
                await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_get_current_user_inactive(self, auth_service, make_user):
        user = await make_user("gone@example.com", is_active=False)

        with pytest.raises(AuthenticationException):
            await auth_service.get_current_user(auth_service.create_access_token(user))


class TestAdminAccountUpdates:

    @pytest_asyncio.fixture
    async def auth_service(self, db_session):
        return AuthService(db_session)

    @pytest.mark.asyncio
    async def test_update_profile_changes_given_fields(self, auth_service, admin_user):
        profile = await auth_service.update_profile(
            admin_user, AdminProfileUpdate(name="Grace", email="Grace@Example.com")
        )

        assert profile.name == "Grace"
        assert profile.email == "grace@example.com"
        assert profile.phone == "+2348000000000"
        assert await auth_service.get_user_by_email("admin@example.com") is None

    @pytest.mark.asyncio
    async def test_update_profile_keeps_own_email(self, auth_service, admin_user):
        profile = await auth_service.update_profile(
            admin_user, AdminProfileUpdate(email="admin@example.com", phone="+2348111111111")
        )

        assert profile.email == "admin@example.com"
        assert profile.phone == "+2348111111111"

    @pytest.mark.asyncio
    async def test_update_profile_rejects_email_of_another_user(self, auth_service, admin_user, regular_user):
        with pytest.raises(ValidationException) as exc_info:
            await auth_service.update_profile(admin_user, AdminProfileUpdate(email=regular_user.email))

        assert exc_info.value.status_code == 400
        assert (await auth_service.get_user_by_id(admin_user.id)).email == "admin@example.com"

    @pytest.mark.asyncio
    async def test_change_password(self, auth_service, admin_user):
        await auth_service.change_password(
            admin_user, PasswordChange(current_password=ADMIN_PASSWORD, new_password="brand-new-pass")
        )

        user = await auth_service.get_user_by_id(admin_user.id)
        assert auth_service.password_manager.verify_password("brand-new-pass", user.hashed_password)
        assert not auth_service.password_manager.verify_password(ADMIN_PASSWORD, user.hashed_password)

    @pytest.mark.asyncio
    async def test_change_password_with_wrong_current_password(self, auth_service, admin_user):
        with pytest.raises(ValidationException) as exc_info:
            await auth_service.change_password(
                admin_user, PasswordChange(current_password="not-it", new_password="brand-new-pass")
            )

        assert exc_info.value.message == "Current password is incorrect"
        user = await auth_service.get_user_by_id(admin_user.id)
        assert auth_service.password_manager.verify_password(ADMIN_PASSWORD, user.hashed_password)
