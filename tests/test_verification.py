from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app.consultancy.models import Base, User, VerificationCode
from app.consultancy.verification import (
    LOGIN_2FA,
    LOGIN_CODE_TTL,
    consume_code,
    generate_code,
    is_code_format,
    issue_code,
    mask_email,
)


@pytest.fixture()
def s(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path/'codes.db'}", future=True)
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(User(id="u1", username="alice", email="alice@x.com", password_hash="h"))
        session.commit()
        yield session
    engine.dispose()


def test_generate_code_shape():
    for _ in range(200):
        code = generate_code()
        assert is_code_format(code)
        assert code[0] != "0"


def test_is_code_format():
    assert is_code_format("123456")
    assert not is_code_format("12345")
    assert not is_code_format("12345a")
    assert not is_code_format("")


@pytest.mark.parametrize(
    "email,masked",
    [
        ("alice@x.com", "ali***@x.com"),
        ("bo@x.com", "bo***@x.com"),
        ("a@example.org", "a***@example.org"),
    ],
)
def test_mask_email(email, masked):
    assert mask_email(email) == masked


def test_consume_is_single_use(s):
    user = s.get(User, "u1")
    vc = issue_code(s, user, LOGIN_2FA, LOGIN_CODE_TTL)
    s.commit()

    assert consume_code(s, "u1", vc.code, LOGIN_2FA) is not None
    s.commit()
    assert consume_code(s, "u1", vc.code, LOGIN_2FA) is None


def test_consume_wrong_type_or_user(s):
    user = s.get(User, "u1")
    vc = issue_code(s, user, LOGIN_2FA, LOGIN_CODE_TTL)
    assert consume_code(s, "u1", vc.code, "email_verification") is None
    assert consume_code(s, "someone-else", vc.code, LOGIN_2FA) is None


def test_expired_codes_are_rejected_and_purged(s):
    user = s.get(User, "u1")
    issued_at = datetime.utcnow() - timedelta(minutes=11)
    vc = issue_code(s, user, LOGIN_2FA, LOGIN_CODE_TTL, now=issued_at)
    s.commit()

    assert consume_code(s, "u1", vc.code, LOGIN_2FA) is None
    s.commit()
    assert s.query(VerificationCode).count() == 0


def test_unknown_code_type_rejected(s):
    with pytest.raises(ValueError):
        issue_code(s, s.get(User, "u1"), "password_reset", LOGIN_CODE_TTL)
