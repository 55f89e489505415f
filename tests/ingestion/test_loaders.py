import pandas as pd
import pytest

from lead_intake.ingestion.loaders import UnsupportedFileTypeError, load_emails


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {
                "Message ID": "001",
                "Sender": "Jane Doe <jane@zillow.com>",
                "Title": "New lead inquiry",
                "Content": "Interested in 123 Main Street.\nCall 555-123-4567",
                "Received": "2024-05-01",
            },
            {
                "Message ID": "",
                "Sender": "",
                "Title": "",
                "Content": "",
                "Received": "",
            },
            {
                "Message ID": "002",
                "Sender": "noreply@marketing.com",
                "Title": "Newsletter",
                "Content": "Deals",
                "Received": "2024-05-02",
            },
        ]
    )


def test_load_emails_from_csv_with_mapping(sample_dataframe, tmp_path):
    csv_path = tmp_path / "emails.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    emails = load_emails(
        csv_path,
        column_mapping={
            "email_id": "Message ID",
            "sender": "Sender",
            "subject": "Title",
            "body": "Content",
            "date": "Received",
        },
    )

    assert len(emails) == 2
    first, second = emails
    assert first.email_id == "001"
    assert first.sender == "Jane Doe <jane@zillow.com>"
    assert first.subject == "New lead inquiry"
    assert "555-123-4567" in first.body
    assert first.date == "2024-05-01"
    assert second.email_id == "002"


def test_load_emails_from_excel_with_automatic_mapping(sample_dataframe, tmp_path):
    excel_path = tmp_path / "emails.xlsx"
    sample_dataframe.rename(
        columns={
            "Message ID": "id",
            "Sender": "From",
            "Title": "subject",
            "Content": "message",
            "Received": "date",
        }
    ).to_excel(excel_path, index=False)

    emails = load_emails(excel_path)

    assert len(emails) == 2
    assert emails[0].email_id == "001"
    assert emails[0].sender == "Jane Doe <jane@zillow.com>"
    assert emails[0].body.startswith("Interested in 123 Main Street.")
    assert emails[1].subject == "Newsletter"


def test_unsupported_file_extension(tmp_path):
    bad_path = tmp_path / "emails.json"
    bad_path.write_text("{}", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        load_emails(bad_path)
