"""Tests for account commands."""

import re

from finledger.cli.main import cli


def _created_id(output: str) -> str:
    return re.search(r"\(ID: ([0-9a-f]+)\)", output).group(1)


def _invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def test_account_create(cli_runner, temp_db):
    """Test creating an account with an opening balance."""
    result = _invoke(cli_runner, temp_db, "account", "create", "HDFC Savings", "--balance", "25,000")

    assert result.exit_code == 0
    assert "Created account 'HDFC Savings'" in result.output
    assert "ID:" in result.output


def test_account_create_loan(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "account",
        "create",
        "Home Loan",
        "--type",
        "loan",
        "--balance",
        "150000",
        "--principal",
        "200000",
        "--interest-rate",
        "8.5",
        "--emi",
        "2500",
        "--emis-left",
        "60",
    )
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "account", "list")
    assert "Home Loan" in result.output
    assert "EMIs left: 60" in result.output


def test_account_create_incomplete_loan(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "account", "create", "Loan", "--type", "loan", "--emi", "100")
    assert result.exit_code == 1
    assert "Loan details need" in result.output


def test_account_create_invalid_balance(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "account", "create", "Bad", "--balance", "lots")
    assert result.exit_code == 1
    assert "Invalid amount format" in result.output


def test_account_list_empty(cli_runner, temp_db):
    """Test listing accounts when none exist."""
    result = _invoke(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_hides_hidden_types(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Wallet", "--type", "cash")
    _invoke(cli_runner, temp_db, "account", "create", "Amex", "--type", "credit", "--statement-day", "15")

    result = _invoke(cli_runner, temp_db, "account", "list")
    assert "Wallet" in result.output
    assert "Amex" not in result.output

    result = _invoke(cli_runner, temp_db, "account", "list", "--all")
    assert "Amex" in result.output


def test_account_show_credit_card(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Amex", "--type", "credit", "--statement-day", "15")

    result = _invoke(cli_runner, temp_db, "account", "show", "Amex")

    assert result.exit_code == 0
    assert "Billed:" in result.output
    assert "Unbilled:" in result.output


def test_account_update(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Savings", "--balance", "100")

    result = _invoke(cli_runner, temp_db, "account", "update", "Savings", "--name", "Salary", "--balance", "250.75")

    assert result.exit_code == 0
    assert "Updated account 'Salary'" in result.output
    result = _invoke(cli_runner, temp_db, "account", "list")
    assert "Salary" in result.output
    assert "250.75" in result.output


def test_account_update_nothing(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Savings")
    result = _invoke(cli_runner, temp_db, "account", "update", "Savings")
    assert result.exit_code == 0
    assert "Nothing to update" in result.output


def test_account_update_emis_without_loan(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Savings")
    result = _invoke(cli_runner, temp_db, "account", "update", "Savings", "--emis-left", "3")
    assert result.exit_code == 1
    assert "no loan details" in result.output


def test_account_unknown(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "account", "update", "Nowhere", "--name", "X")
    assert result.exit_code == 1
    assert "Account 'Nowhere' not found" in result.output


def test_account_delete_cascades(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Savings", "--balance", "100")
    _invoke(cli_runner, temp_db, "account", "create", "Wallet", "--type", "cash")
    _invoke(
        cli_runner,
        temp_db,
        "transaction",
        "add",
        "--account",
        "Savings",
        "--to-account",
        "Wallet",
        "--type",
        "transfer",
        "--amount",
        "40",
    )

    result = _invoke(cli_runner, temp_db, "account", "delete", "Savings", input="y\n")

    assert result.exit_code == 0
    assert "Delete account 'Savings' and its 1 transaction?" in result.output
    assert "Deleted account 'Savings' and 1 transactions" in result.output
    result = _invoke(cli_runner, temp_db, "transaction", "list")
    assert "No transactions found" in result.output
    # the other side of the transfer keeps its balance
    result = _invoke(cli_runner, temp_db, "account", "list")
    assert "40.00" in result.output


def test_account_delete_cancelled(cli_runner, temp_db):
    _invoke(cli_runner, temp_db, "account", "create", "Savings")

    result = _invoke(cli_runner, temp_db, "account", "delete", "Savings", input="n\n")

    assert "Deletion cancelled" in result.output
    assert "Savings" in _invoke(cli_runner, temp_db, "account", "list").output
