from unittest.mock import MagicMock, patch

import gspread
import pandas as pd
import pytest

import sheets_publisher
from sheets_publisher import STAR_FORMATS, frame_to_values, publish_frame, star_formatting


@pytest.fixture
def frame():
    return pd.DataFrame([[1, "Alpha", "⭐⭐⭐"], [2, "Bravo", ""], [3, "Charlie", "⭐"]],
                        columns=["#", "Name", "Stars"]).set_index("#")


def test_frame_to_values_keeps_named_index(frame):
    values = frame_to_values(frame)

    assert values[0] == ["#", "Name", "Stars"]
    assert values[1] == ["1", "Alpha", "⭐⭐⭐"]
    assert len(values) == 4


def test_frame_to_values_drops_unnamed_index():
    values = frame_to_values(pd.DataFrame([["Alpha", 14]], columns=["Name", "TH"]))

    assert values == [["Name", "TH"], ["Alpha", "14"]]


def test_star_formatting_colors_by_star_count(frame):
    formatting = star_formatting(frame_to_values(frame))

    assert formatting == [{"range": "C2", "format": STAR_FORMATS[3]},
                          {"range": "C4", "format": STAR_FORMATS[1]}]


@pytest.fixture
def spreadsheet():
    spreadsheet = MagicMock()
    client = MagicMock()
    client.open_by_key.return_value = spreadsheet
    spreadsheet.client = client
    return spreadsheet


def test_publish_frame_replaces_existing_worksheet(frame, spreadsheet):
    worksheet = spreadsheet.worksheet.return_value

    with patch.object(sheets_publisher, "batch_updater") as batch_updater:
        publish_frame(frame, "sheet-key", "CWL Attacks", client=spreadsheet.client)

    spreadsheet.client.open_by_key.assert_called_once_with("sheet-key")
    worksheet.clear.assert_called_once()
    worksheet.update.assert_called_once_with(values=frame_to_values(frame), range_name="A1")
    batch_updater.return_value.execute.assert_called_once()
    assert len(worksheet.batch_format.call_args.args[0]) == 2


def test_publish_frame_creates_missing_worksheet(spreadsheet):
    spreadsheet.worksheet.side_effect = gspread.exceptions.WorksheetNotFound("Roster")
    roster = pd.DataFrame([["Alpha", 14]], columns=["Name", "TH"])

    with patch.object(sheets_publisher, "batch_updater"):
        publish_frame(roster, "sheet-key", "Roster", client=spreadsheet.client)

    spreadsheet.add_worksheet.assert_called_once_with(title="Roster", rows=2, cols=2)
    worksheet = spreadsheet.add_worksheet.return_value
    worksheet.update.assert_called_once()
    worksheet.batch_format.assert_not_called()
