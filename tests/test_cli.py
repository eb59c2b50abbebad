import cli


def write_input(tmp_path, text):
    path = tmp_path / "transactions.csv"
    path.write_text(text)
    return str(path)


class TestCli:
    """End-to-end runs of the command-line entry point."""

    def test_report(self, tmp_path, capsys):
        source = write_input(
            tmp_path,
            "type, client, tx, amount\n"
            "deposit, 1, 1, 1.0\n"
            "deposit, 2, 2, 2.0\n"
            "deposit, 1, 3, 2.0\n"
            "withdrawal, 1, 4, 1.5\n"
            "withdrawal, 2, 5, 3.0\n"
        )
        assert cli.main([source]) == 0
        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,0.0000,2.0000,false\n"
        )

    def test_chargeback_locks(self, tmp_path, capsys):
        source = write_input(
            tmp_path,
            "type,client,tx,amount\n"
            "deposit,1,1,1.0\n"
            "deposit,1,2,2.0\n"
            "dispute,1,1,\n"
            "chargeback,1,1,\n"
        )
        assert cli.main([source]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[1] == "1,2.0000,0.0000,2.0000,true"

    def test_malformed_rows_skipped(self, tmp_path, capsys):
        source = write_input(
            tmp_path,
            "type,client,tx,amount\n"
            "deposit,1,1,\n"
            "deposit,1,2,3.0\n"
        )
        assert cli.main([source]) == 0
        assert capsys.readouterr().out.splitlines()[1] == "1,3.0000,0.0000,3.0000,false"

    def test_stop_on_error(self, tmp_path, capsys):
        source = write_input(
            tmp_path,
            "type,client,tx,amount\n"
            "withdrawal,1,1,1.0\n"
            "deposit,1,2,3.0\n"
        )
        assert cli.main([source, "--stop-on-error"]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main([str(tmp_path / "nope.csv")]) == 1
        assert capsys.readouterr().out == ""

    def test_invalid_utf8_row_is_malformed(self, tmp_path, capsys):
        path = tmp_path / "transactions.csv"
        path.write_bytes(b"type,client,tx,amount\ndeposit,1,1,1.0\ndeposit,1,2,\xff\n")
        assert cli.main([str(path)]) == 0
        assert capsys.readouterr().out.splitlines() == [
            "client,available,held,total,locked",
            "1,1.0000,0.0000,1.0000,false",
        ]

    def test_byte_order_mark(self, tmp_path, capsys):
        path = tmp_path / "transactions.csv"
        path.write_bytes(b"\xef\xbb\xbftype,client,tx,amount\ndeposit,1,1,1.0\n")
        assert cli.main([str(path)]) == 0
        assert capsys.readouterr().out.splitlines()[1:] == ["1,1.0000,0.0000,1.0000,false"]

    def test_unreadable_csv_still_reports(self, tmp_path, capsys):
        source = write_input(
            tmp_path,
            "type,client,tx,amount\n"
            "deposit,1,1,1.0\n"
            "deposit,1,2," + "9" * 200_000 + "\n"
        )
        assert cli.main([source]) == 1
        assert capsys.readouterr().out.splitlines() == [
            "client,available,held,total,locked",
            "1,1.0000,0.0000,1.0000,false",
        ]
