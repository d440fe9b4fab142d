from main import _parse_args


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"
    assert args.port == 8787
    assert args.config is None


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080", "--config", "auth.yaml"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080
    assert args.config == "auth.yaml"


def test_lookup_subcommand_takes_email() -> None:
    args = _parse_args(["lookup", "alice@example.com"])
    assert args.command == "lookup"
    assert args.email == "alice@example.com"


def test_create_user_subcommand_accepts_config() -> None:
    args = _parse_args(["create-user", "--config", "other.yaml", "bob@example.com"])
    assert args.command == "create-user"
    assert args.email == "bob@example.com"
    assert args.config == "other.yaml"
