import pytest

from db import get_session
from db.engine import drop_all
from main import create_app

PROJECTS_CSV = (
    "Project Name,Mentor Name,Mentor Email,Mentee Name,Mentee Email,Duration\n"
    "AI Tutor,Dr. Rao,rao@uni.edu,Asha,asha@uni.edu,2\n"
    "Robotics,Dr. Rao,RAO@uni.edu,,,\n"
)


@pytest.fixture
def app(tmp_path):
    """Flask app bound to a throwaway SQLite file."""
    app = create_app(f"sqlite:///{tmp_path / 'test.sqlite'}")
    app.config["TESTING"] = True
    yield app
    drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def projects_csv():
    return PROJECTS_CSV.encode("utf-8")


@pytest.fixture
def login(client):
    """Sign up (or claim) an account, log in, and return request headers."""
    def _login(email, role, password="secret123", name=""):
        client.post("/api/v1/auth/signup", json={
            "email": email, "password": password, "role": role, "name": name,
        })
        resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        body = resp.get_json()
        return {
            "Authorization": f"Bearer {body['token']}",
            "X-Active-Role": role,
        }
    return _login
