import json

import pytest

from autoleadgen.csv_io import export_contacts, format_contacts, import_contacts, parse_contacts
from autoleadgen.errors import FileNotFound, InvalidFileFormatError, InvalidURLError
from autoleadgen.status_store import StatusStore, status_path_for
from schemas.leads import MessageStatus

CSV = (
    "firstName,lastName,profileURL,message,status\n"
    'Jane,Doe,https://www.linkedin.com/in/jane,"Hi Jane, quick question",sent\n'
    "Joe,Bloggs,linkedin.com/in/joe,,\n"
    ",,,,\n"
    "Short,Row\n"
    "No,Url,,hello\n"
    "Amy,Lee,https://linkedin.com/in/amy,Hello,in_progress\n"
)


def test_parse_contacts_rows_and_statuses():
    contacts = parse_contacts(CSV)
    assert [c.first_name for c in contacts] == ["Jane", "Joe", "Amy"]
    assert contacts[0].message_text == "Hi Jane, quick question"
    assert [c.message_status for c in contacts] == [
        MessageStatus.SENT, MessageStatus.PENDING, MessageStatus.IN_PROGRESS,
    ]
    assert contacts[0].position == 1
    assert contacts[0].source == "CSV Import"


def test_invalid_url_rejects_the_file():
    with pytest.raises(InvalidURLError):
        parse_contacts("h1,h2,h3,h4\nA,B,not a url,msg\n")


def test_import_checks_path_and_extension(tmp_path):
    with pytest.raises(FileNotFound):
        import_contacts(tmp_path / "missing.csv")
    other = tmp_path / "contacts.xlsx"
    other.write_text("x")
    with pytest.raises(InvalidFileFormatError):
        import_contacts(other)

    path = tmp_path / "contacts.csv"
    path.write_text("\ufeff" + CSV, encoding="utf-8")
    assert len(import_contacts(path)) == 3


def test_export_uses_effective_message(tmp_path):
    contacts = parse_contacts(CSV)
    contacts[1].generated_message = "Generated for Joe"
    text = format_contacts(contacts)
    lines = text.splitlines()
    assert lines[0] == "firstName,lastName,profileURL,message,status"
    assert lines[2] == "Joe,Bloggs,linkedin.com/in/joe,Generated for Joe,Pending"

    out = tmp_path / "out" / "batch.csv"
    export_contacts(out, contacts)
    assert [c.first_name for c in import_contacts(out)] == ["Jane", "Joe", "Amy"]


def test_status_path_naming():
    assert status_path_for("/data/may_batch.csv").name == "may_batch_status.json"


def test_status_store_merges_and_restores(tmp_path):
    batch = tmp_path / "batch.csv"
    store = StatusStore.for_batch(batch)
    first = parse_contacts(CSV)
    first[0].message_status = MessageStatus.SENT
    store.save(first[:1])
    first[1].message_status = MessageStatus.FAILED
    first[1].error_message = "Element not found: Message button"
    store.save(first[1:2])

    raw = json.loads((tmp_path / "batch_status.json").read_text())
    assert set(raw["statuses"]) == {"https://www.linkedin.com/in/jane", "linkedin.com/in/joe"}
    assert "errorMessage" not in raw["statuses"]["https://www.linkedin.com/in/jane"]

    fresh = parse_contacts(CSV.replace(",sent\n", ",\n"))
    fresh[0].profile_url = "http://linkedin.com/in/jane/"
    assert store.apply(fresh) == 2
    assert fresh[0].message_status == MessageStatus.SENT
    assert fresh[1].message_status == MessageStatus.FAILED
    assert fresh[1].error_message == "Element not found: Message button"
    assert fresh[2].message_status == MessageStatus.IN_PROGRESS

    store.clear()
    assert store.load() == {}


def test_corrupt_status_file_is_ignored(tmp_path):
    path = tmp_path / "x_status.json"
    path.write_text("{broken")
    assert StatusStore(path).load() == {}
