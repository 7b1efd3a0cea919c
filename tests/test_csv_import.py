import pytest

from autoblog.domain.services.csv_import_svc import CsvFormatError, parse_keywords_csv


def test_valid_and_invalid_rows_are_counted():
    data = (
        "Primary_Keyword, Scheduled_Date ,scheduled_time\n"
        "wireless earbuds,2025-03-01,09:30\n"
        "\n"
        ",2025-03-01,09:30\n"
        "security camera,03/01/2025,9:30\n"
        "robot vacuum,2025-03-02,14:00\n"
    ).encode("utf-8")

    result = parse_keywords_csv(data)

    assert result.valid_count == 2
    assert [k.primary_keyword for k in result.valid] == ["wireless earbuds", "robot vacuum"]
    assert result.invalid_count == 2
    assert result.invalid[0].errors == ["Primary keyword is required"]
    assert set(result.invalid[1].errors) == {
        "Scheduled date must be in YYYY-MM-DD format",
        "Scheduled time must be in HH:MM format",
    }


def test_columns_can_come_in_any_order_with_bom():
    data = "\ufeffscheduled_time,primary_keyword,scheduled_date\n08:00,gaming mouse,2025-05-05\n".encode("utf-8")
    [kw] = parse_keywords_csv(data).valid
    assert (kw.primary_keyword, kw.scheduled_date, kw.scheduled_time) == ("gaming mouse", "2025-05-05", "08:00")


def test_quoted_keywords_with_commas():
    data = b'primary_keyword,scheduled_date,scheduled_time\n"earbuds, wireless",2025-05-05,08:00\n'
    assert parse_keywords_csv(data).valid[0].primary_keyword == "earbuds, wireless"


def test_missing_columns_are_reported():
    with pytest.raises(CsvFormatError) as exc:
        parse_keywords_csv(b"primary_keyword,date\nfoo,2025-01-01\n")
    assert "scheduled_date" in str(exc.value)
    assert "scheduled_time" in str(exc.value)


def test_empty_file_is_rejected():
    with pytest.raises(CsvFormatError):
        parse_keywords_csv(b"  \n")
