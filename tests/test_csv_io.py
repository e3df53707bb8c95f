from collections import Counter

from fintrack.csv_io import decode_upload, export_csv, import_csv, parse_csv_line
from fintrack.domain import Transaction


def make_tx(id, category, amount, type="expense", date="2025-09-01", notes=""):
    return Transaction(id=id, date=date, category=category, amount=amount, type=type, notes=notes)


def sample_transactions():
    return (
        make_tx("t1", "Salary", 50000, "income", "2025-09-01", "September"),
        make_tx("t2", "Food", 8000, "expense", "2025-09-03", "Groceries, dinner"),
        make_tx("t3", "Rent", 15000, "expense", "2025-09-02"),
        make_tx("t4", "Food", 120.5, "expense", "2025-09-04", 'said "thanks"'),
    )


def test_export_quotes_every_field():
    lines = export_csv(sample_transactions()).strip().split("\n")

    assert lines[0] == '"Date","Category","Amount","Type","Notes"'
    assert len(lines) == 5
    for line in lines[1:]:
        assert line.startswith('"')
        assert line.endswith('"')


def test_export_empty():
    assert export_csv(()).strip() == '"Date","Category","Amount","Type","Notes"'


def test_round_trip_preserves_category_amount_type():
    original = sample_transactions()

    restored = import_csv(export_csv(original))

    def key(t):
        return (t.category, t.amount, t.type)

    assert Counter(map(key, restored)) == Counter(map(key, original))


def test_round_trip_keeps_dates_and_notes():
    restored = {t.category + t.date: t for t in import_csv(export_csv(sample_transactions()))}

    assert restored["Food2025-09-03"].notes == "Groceries, dinner"
    assert restored["Food2025-09-04"].notes == 'said "thanks"'
    assert restored["Salary2025-09-01"].notes == "September"


def test_import_skips_header_and_bad_rows():
    text = "\n".join([
        "Date,Category,Amount,Type,Notes",
        "2025-01-01,Food,100,expense,lunch",
        "2025-01-02,Food,abc,expense,",
        "2025-01-03,Food,-5,expense,",
        "",
        "broken",
        "2025-01-04,Pay,900,INCOME,",
    ])

    trans = import_csv(text)

    assert [(t.category, t.amount, t.type) for t in trans] == [("Food", 100, "expense"), ("Pay", 900, "income")]


def test_import_type_defaults_to_expense():
    trans = import_csv("header\n2025-01-01,Refund,10,refund,\n2025-01-01,Misc,10\n")

    assert [t.type for t in trans] == ["expense", "expense"]


def test_import_fills_missing_date():
    trans = import_csv('header\n"","Food","10","expense",""', default_date="2025-06-30")

    assert trans[0].date == "2025-06-30"


def test_parse_csv_line_strips_quotes():
    row = parse_csv_line('"2025-01-01","Food","12.5","Income","a note"')

    assert row == {"date": "2025-01-01", "category": "Food", "amount": "12.5", "type": "income", "notes": "a note"}


def test_round_trip_keeps_comma_in_category():
    original = (make_tx("t1", "Food, drinks", 10.0, "expense", "2025-09-01", "bar, late"),)

    restored = import_csv(export_csv(original))

    assert [(t.category, t.amount, t.type, t.notes) for t in restored] == [("Food, drinks", 10.0, "expense", "bar, late")]


def test_import_folds_unquoted_commas_into_notes():
    trans = import_csv("header\n2025-01-01,Food,10,expense,lunch, with friends\n")

    assert trans[0].notes == "lunch, with friends"


def test_decode_upload_accepts_utf8_with_bom():
    text = decode_upload("\ufeffDate,Category\n2025-01-01,Café".encode("utf-8"))

    assert text.get_or_else(None) == "Date,Category\n2025-01-01,Café"


def test_decode_upload_rejects_other_encodings():
    result = decode_upload("2025-01-01,Café,10".encode("cp1252"))

    assert result.is_left()
    assert result.get_error()["error"] == "unreadable_file"
