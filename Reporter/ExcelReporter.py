import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill

from CrackAnalysis.measurement import CrackMeasurement
from utils.logger import ProgressLogger

logger = logging.getLogger(__name__)


def _thin_border() -> Border:
    return Border(
        left=Side(style="thin", color="000000"),
        right=Side(style="thin", color="000000"),
        top=Side(style="thin", color="000000"),
        bottom=Side(style="thin", color="000000")
    )


@dataclass
class ExcelStyles:
    """Styles for Excel formatting"""
    header_font: Font = field(default_factory=lambda: Font(bold=True, color="FFFFFF"))
    header_alignment: Alignment = field(
        default_factory=lambda: Alignment(horizontal="center", vertical="center"))
    header_fill: PatternFill = field(
        default_factory=lambda: PatternFill(start_color="16365C", end_color="16365C", fill_type="solid"))
    header_border: Border = field(default_factory=_thin_border)
    data_fill_even: PatternFill = field(
        default_factory=lambda: PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid"))
    data_fill_odd: PatternFill = field(
        default_factory=lambda: PatternFill(start_color="FFFFFF", end_color="FFFFFF", fill_type="solid"))
    data_alignment: Alignment = field(
        default_factory=lambda: Alignment(horizontal="center", vertical="center"))
    data_font: Font = field(default_factory=lambda: Font(color="000000"))


class CrackExcelReporter:
    """Write crack measurements to a styled worksheet, one row per crack."""

    STAGE = "reporting"

    def __init__(self, output_path: str, progress_logger: Optional[ProgressLogger] = None):
        self.output_path = output_path
        self.workbook = Workbook()
        self.sheet = self.workbook.active
        self.sheet.title = "Crack Measurements"
        self.styles = ExcelStyles()
        self.progress_logger = progress_logger
        self.headers = [
            "Crack", "Center X (px)", "Center Y (px)", "Width (px)", "Length (px)",
            "Area (px)", "Skeleton Pixels", "BBox X", "BBox Y", "BBox Width", "BBox Height"
        ]

    def apply_header_styling(self) -> None:
        """Apply styling to header row"""
        self.sheet.row_dimensions[1].height = 30

        for col_num, header in enumerate(self.headers, 1):
            cell = self.sheet.cell(row=1, column=col_num, value=header)
            cell.font = self.styles.header_font
            cell.alignment = self.styles.header_alignment
            cell.fill = self.styles.header_fill
            cell.border = self.styles.header_border

    @staticmethod
    def row_values(index: int, crack: CrackMeasurement) -> list:
        x, y, w, h = crack.bbox
        return [
            index + 1,
            round(crack.center_x, 1),
            round(crack.center_y, 1),
            round(crack.width, 1),
            round(crack.length, 1),
            crack.area,
            crack.skeleton_pixels,
            x, y, w, h
        ]

    def write_data_rows(self, measurements: List[CrackMeasurement]) -> None:
        """Write and style data rows"""
        total_rows = len(measurements)

        for index, crack in enumerate(measurements):
            row_num = index + 2
            fill = self.styles.data_fill_even if row_num % 2 == 0 else self.styles.data_fill_odd

            for col_num, value in enumerate(self.row_values(index, crack), 1):
                cell = self.sheet.cell(row=row_num, column=col_num, value=value)
                cell.font = self.styles.data_font
                cell.alignment = self.styles.data_alignment
                cell.border = self.styles.header_border
                cell.fill = fill

            if self.progress_logger is not None and row_num % 10 == 0:
                self.progress_logger.update_stage_progress(
                    self.STAGE,
                    (index + 1) / total_rows * 100,
                    {"status": f"Writing row {index + 1} of {total_rows}"}
                )

    def adjust_column_widths(self) -> None:
        """Adjust column widths based on content"""
        for col in self.sheet.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
            self.sheet.column_dimensions[col[0].column_letter].width = max_length + 2

    def generate_report(self, measurements: List[CrackMeasurement]) -> str:
        """Generate the Excel report and return its path"""
        self.apply_header_styling()
        self.write_data_rows(measurements)
        self.adjust_column_widths()

        directory = os.path.dirname(self.output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.workbook.save(self.output_path)

        if self.progress_logger is not None:
            self.progress_logger.complete_stage(
                self.STAGE,
                {"status": f"Wrote {len(measurements)} rows", "path": self.output_path}
            )
        logger.info("Excel report written: %s", self.output_path)
        return self.output_path
