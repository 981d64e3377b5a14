from socialme import init_db


def test_main_creates_tables(mocker) -> None:
    create = mocker.patch.object(init_db, "create_tables")
    drop = mocker.patch.object(init_db, "drop_tables")

    assert init_db.main([]) == 0

    create.assert_called_once_with()
    drop.assert_not_called()


def test_drop_flag_recreates_tables(mocker) -> None:
    manager = mocker.Mock()
    mocker.patch.object(init_db, "create_tables", manager.create)
    mocker.patch.object(init_db, "drop_tables", manager.drop)

    init_db.main(["--drop-tables"])

    assert [c[0] for c in manager.mock_calls] == ["drop", "create"]
