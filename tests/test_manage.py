import asyncio

import manage
from legal_eye_api.app.core.db import Database
from legal_eye_api.app.services.user_service import UserService


def test_create_admin_and_reset_password(tmp_path, capsys):
    db_path = str(tmp_path / "manage.db")

    code = manage.main(
        ["--db", db_path, "create-admin", "--name", "Root", "--email", "Root@Example.com", "--password", "adminpass1"]
    )
    assert code == 0
    assert "[+] Created admin root@example.com" in capsys.readouterr().out

    db = Database(db_path)
    user = asyncio.run(UserService.authenticate(db, "root@example.com", "adminpass1"))
    assert user.role == "admin"

    assert manage.main(["--db", db_path, "reset-password", "--email", "root@example.com", "--password", "changed123"]) == 0
    assert asyncio.run(UserService.authenticate(db, "root@example.com", "changed123")).id == user.id


def test_manage_reports_errors(tmp_path, capsys):
    db_path = str(tmp_path / "manage.db")
    args = ["--db", db_path, "create-admin", "--name", "Root", "--email", "root@example.com", "--password", "adminpass1"]
    assert manage.main(args) == 0
    assert manage.main(args) == 2
    assert "User already exists with this email" in capsys.readouterr().err

    assert manage.main(["--db", db_path, "reset-password", "--email", "ghost@example.com", "--password", "whatever1"]) == 2
    assert manage.main(["--db", db_path, "create-admin", "--name", "X", "--email", "bad", "--password", "short"]) == 1
