from datetime import date, time

import pytest

from app import create_app
from config import TestConfig
from models import db, Member, Trainer, Package
from scheduling import ConflictPolicy, ReservationStateMachine

JAN_START = date(2024, 1, 1)
JAN_END = date(2024, 1, 31)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def trainer(app):
    t = Trainer(name="Coach Kim")
    db.session.add(t)
    db.session.commit()
    return t


@pytest.fixture
def make_member(app):
    def _make(name):
        m = Member(name=name)
        db.session.add(m)
        db.session.commit()
        return m
    return _make


@pytest.fixture
def member(make_member):
    return make_member("Alex")


@pytest.fixture
def other_member(make_member):
    return make_member("Jordan")


@pytest.fixture
def make_package(app, trainer):
    def _make(member, start=JAN_START, end=JAN_END, personal=10, group=0, self_=5, status="active"):
        p = Package(
            member_id=member.id,
            trainer_id=trainer.id,
            personal_quota=personal,
            group_quota=group,
            self_quota=self_,
            start_date=start,
            end_date=end,
            status=status,
        )
        db.session.add(p)
        db.session.commit()
        return p
    return _make


@pytest.fixture
def package(make_package, member):
    return make_package(member)


@pytest.fixture
def machine(app):
    return ReservationStateMachine.from_config(app.config)


@pytest.fixture
def exclusive_machine(app):
    return ReservationStateMachine(policy=ConflictPolicy(ConflictPolicy.EXCLUSIVE))


@pytest.fixture
def book(machine, trainer):
    """Trainer-side direct booking: book(member, day, hour, type)."""
    def _book(member, day, hour=10, session_type="personal"):
        return machine.reserve_direct(trainer.id, member.id, session_type, day, time(hour))
    return _book


@pytest.fixture
def as_actor():
    """Headers the upstream gateway sets for an authenticated caller."""
    def _headers(role, actor_id=None):
        headers = {"X-Actor-Role": role}
        if actor_id is not None:
            headers["X-Actor-Id"] = str(actor_id)
        return headers
    return _headers
