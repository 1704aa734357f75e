from war_tables import STAR

import logging

import gspread
import gspread.utils
from gspread_formatting import (CellFormat, Color, ColorStyle, TextFormat, batch_updater)
import pandas as pd


logger = logging.getLogger(__name__)

HEADER_FORMAT = CellFormat(textFormat=TextFormat(bold=True), horizontalAlignment='CENTER',
                           verticalAlignment='MIDDLE')

# Background colors for star cells, keyed by star count.
STAR_FORMATS = {
    3: CellFormat(backgroundColorStyle=ColorStyle(rgbColor=Color(0.0, 1.0, 0.0))).to_props(),  # Green
    2: CellFormat(backgroundColorStyle=ColorStyle(rgbColor=Color(1.0, 1.0, 0.0))).to_props(),  # Yellow
    1: CellFormat(backgroundColorStyle=ColorStyle(rgbColor=Color(1.0, 0.6, 0.0))).to_props(),  # Orange
}


def frame_to_values(frame: pd.DataFrame) -> list[list[str]]:
    """
    Convert a table to the 2D list of strings Google Sheets expects, header row first.
    """

    if frame.index.name:
        frame = frame.reset_index()

    frame = frame.astype(str)
    return [[str(column) for column in frame.columns]] + frame.values.tolist()


def star_formatting(values: list[list[str]]) -> list[dict]:
    """
    Return the batch formatting requests that color every star cell by its star count.
    """

    header = values[0]
    star_columns = [col_index for col_index, column in enumerate(header) if column.startswith("Stars")]

    formatting = []
    for row_index, row in enumerate(values[1:], start=2):
        for col_index in star_columns:
            stars = row[col_index].count(STAR)
            if stars in STAR_FORMATS:
                formatting.append({"range": gspread.utils.rowcol_to_a1(row_index, col_index + 1),
                                   "format": STAR_FORMATS[stars]})
    return formatting


def publish_frame(frame: pd.DataFrame, spreadsheet_id: str, worksheet_name: str,
                  client: gspread.Client | None = None) -> None:
    """
    Replace the contents of a worksheet with a table.

    Args:
        frame (pd.DataFrame): The table to publish.
        spreadsheet_id (str): The key of the Google spreadsheet.
        worksheet_name (str): The worksheet to write to; it is created if it does not exist.
        client (gspread.Client): An authorized client, defaults to the service account client.
    """

    gs = client or gspread.service_account()
    spreadsheet = gs.open_by_key(spreadsheet_id)

    values = frame_to_values(frame)
    try:
        worksheet = spreadsheet.worksheet(worksheet_name)
        worksheet.clear()
    except gspread.exceptions.WorksheetNotFound:
        logger.info(f"Creating worksheet {worksheet_name}")
        worksheet = spreadsheet.add_worksheet(title=worksheet_name, rows=max(len(values), 1),
                                              cols=max(len(values[0]), 1))

    worksheet.update(values=values, range_name="A1")

    # Send formatting data for the whole sheet to Google sheets.
    format_batch = batch_updater(spreadsheet)
    format_batch.format_cell_range(worksheet, "1:1", HEADER_FORMAT)
    format_batch.execute()

    formatting = star_formatting(values)
    if len(formatting) > 0:
        worksheet.batch_format(formatting)

    logger.info(f"Published {len(values) - 1} rows to worksheet {worksheet_name}")
