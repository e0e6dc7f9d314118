from app import check_database


def test_create_admin_command(app, database):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-admin", "root", "s3cret", "--nickname", "Root"])

    assert result.exit_code == 0
    assert "Admin user root created" in result.output
    user = database.get_user_by_login("root", "s3cret")
    assert user["user_nickname"] == "Root"
    assert user["user_is_admin"]


def test_check_database_succeeds(app):
    assert check_database() is True
