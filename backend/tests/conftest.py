import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from tripplanner.core.settings import Settings
from tripplanner.db.session import DatabaseManager
from tripplanner.main import create_app

PASSWORD = "s3cret-pass"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DB_URL=f"sqlite:///{tmp_path / 'trips.db'}",
        JWT_SECRET="test-secret",
        ENVIRONMENT="test",
        ENABLE_RATE_LIMITING=False,
        ENABLE_METRICS=False,
        CREATE_TABLES_ON_STARTUP=True,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest_asyncio.fixture
async def db(settings):
    manager = DatabaseManager(settings)
    await manager.initialize()
    await manager.init_db()
    yield manager
    await manager.close()


def register_and_login(client, email="ana@example.com", name="Ana"):
    """Register a user and leave the session cookie on the client"""
    r = client.post("/api/auth/register", json={"name": name, "email": email, "password": PASSWORD})
    assert r.status_code == 201, r.text
    r = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()["user"]


def paris_payload(activity_datetime="2020-05-02T10:00:00Z"):
    return {
        "trip": {"destination": "PARIS", "start_date": "2020-05-01", "end_date": "2020-05-05", "group_size": 2},
        "hotels": [{
            "hotel_name": "H1",
            "city": "Paris",
            "checkin_date": "2020-05-01",
            "checkout_date": "2020-05-05",
            "booking_ref": "",
        }],
        "transports": [{
            "transport_type": "plane",
            "service_provider": "AF",
            "transport_name": "AF12",
            "boarding_time": "08:30",
            "departure_city": "Lyon",
            "arrival_city": "Paris",
            "departure_date": "2020-05-01T09:00:00Z",
            "arrival_date": "2020-05-01T10:10:00Z",
        }],
        "activities": [{"activity_name": "Louvre", "activity_datetime": activity_datetime}],
    }


@pytest.fixture
def login(client):
    """Factory: register + login on the shared client, returns the user dict"""
    def _login(email="ana@example.com", name="Ana"):
        return register_and_login(client, email=email, name=name)
    return _login


@pytest.fixture
def trip_payload():
    return paris_payload
