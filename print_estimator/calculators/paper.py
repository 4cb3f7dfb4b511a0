"""
Paper calculator — sheets, imposition, spoilage, weight and cost per section.

Printable sections: every enabled text section, the cover, the jacket and
the endleaves. Text and endleaves impose trimmed pages; cover and jacket
impose one flat spread per copy (cover wraps the spine, jacket adds flaps).

Per section, for quantity Q:
1. usable sheet = parent sheet minus bleed on every edge and the gripper
   allowance on the feed edge
2. n_up = grid fit of the piece, rotated only when rotation yields more
3. net sheets = ceil(Q / copies per sheet) × forms
4. spoilage = ceil(net × rate) from the wastage chart and plate changes
5. weight kg = sheet m² × GSM / 1000 × gross sheets; cost = weight × rate/kg
"""

import logging
import math

from .base import BaseCalculator
from ..rate_card import SheetSize
from ..schemas import EstimationInput, PrintingMethod, SectionSpec

logger = logging.getLogger(__name__)

TEXT = "text"
COVER = "cover"
JACKET = "jacket"
ENDLEAVES = "endleaves"


def printable_sections(estimation: EstimationInput) -> list:
    """
    (key, kind, spec) for every section that gets its own paper.
    Keys are unique: text sections are keyed by position, never by label.
    Disabled, zero-page, self-cover and self-endleaf sections are skipped.
    """
    sections = []
    for i, section in enumerate(estimation.text_sections, start=1):
        if section.enabled and section.pages > 0:
            sections.append((f"text_{i}", TEXT, section))
    cover = estimation.cover
    if cover.enabled and cover.pages > 0 and not cover.self_cover:
        sections.append((COVER, COVER, cover))
    jacket = estimation.jacket
    if jacket.enabled and jacket.pages > 0:
        sections.append((JACKET, JACKET, jacket))
    endleaves = estimation.endleaves
    if endleaves.enabled and endleaves.pages > 0 and not endleaves.self_endleaves:
        sections.append((ENDLEAVES, ENDLEAVES, endleaves))
    return sections


def piece_size(kind: str, estimation: EstimationInput, spine_mm: float,
               default_flap_mm: float = 0.0) -> tuple:
    """Flat (width, height) in mm of one imposed piece."""
    width = estimation.book_spec.width_mm
    height = estimation.book_spec.height_mm
    if kind == COVER:
        return 2 * width + spine_mm, height
    if kind == JACKET:
        flap = estimation.jacket.flap_width_mm or default_flap_mm
        return 2 * width + spine_mm + 2 * flap, height
    return width, height


class PaperCalculator(BaseCalculator):

    SECTION = "paper"

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """
        context needs "spine_with_board" (from BindingCalculator.spine).
        Returns {"total", "breakdown", "sections": [layout dict, ...]}.
        """
        spine = context.get("spine_with_board", 0.0)
        layouts = []
        for key, kind, section in printable_sections(estimation):
            layout = self.calculate_section(key, kind, section, estimation, quantity, spine)
            logger.debug(
                "Paper %s Q=%d: %s %d-up, %d forms, %d+%d sheets, %.2f kg, %.2f",
                key, quantity, layout["sheet_size"], layout["n_up"], layout["forms"],
                layout["net_sheets"], layout["spoilage_sheets"],
                layout["weight_kg"], layout["cost"],
            )
            layouts.append(layout)

        breakdown = {}
        for layout in layouts:
            breakdown[layout["section"]] = breakdown.get(layout["section"], 0.0) + layout["cost"]
        return self.make_result(breakdown, sections=layouts)

    def calculate_section(self, key: str, kind: str, section: SectionSpec,
                          estimation: EstimationInput, quantity: int, spine: float) -> dict:
        piece_w, piece_h = piece_size(kind, estimation, spine, self.rate_card.default_jacket_flap_mm)
        double_sided, piece_sides = self.piece_sides(kind, section)

        copies = quantity
        if kind == JACKET:
            copies = self.ceil_units(quantity * (1 + estimation.jacket.extra_jackets_percent / 100.0))

        machine = self._machine_for(section, key)
        sheet, n_up = self._choose_sheet(key, section, machine, piece_w, piece_h,
                                         double_sided, piece_sides, copies)
        forms, net = self.net_sheets(n_up, double_sided, piece_sides, copies,
                                     section.printing_method)

        colors = int(max(section.colors_front, section.colors_back))
        spoilage = self.spoilage_sheets(net, forms, colors, int(section.plate_changes), quantity)
        gross = net + spoilage

        weight_kg = sheet.area_sqm * section.gsm / 1000.0 * gross
        rate_per_kg = self.rate_card.paper_rate_per_kg(section.paper_type, section.paper_code,
                                                       section.gsm)
        return {
            "section": key,
            "label": section.label or key,
            "kind": kind,
            "sheet_size": sheet.label,
            "sheet_area_sqm": sheet.area_sqm,
            "piece_area_sqm": self.sqm(piece_w, piece_h),
            "n_up": n_up,
            "forms": forms,
            "copies": copies,
            "net_sheets": net,
            "spoilage_sheets": spoilage,
            "gross_sheets": gross,
            "weight_kg": round(weight_kg, 3),
            "rate_per_kg": round(rate_per_kg, 2),
            "cost": self.money(weight_kg * rate_per_kg),
            "double_sided": double_sided,
            "colors_front": int(section.colors_front),
            "colors_back": int(section.colors_back),
            "printing_method": section.printing_method,
            "plate_changes": int(section.plate_changes),
            "machine_id": machine.id,
            "own_machine": bool(section.machine_id),
        }

    def piece_sides(self, kind: str, section: SectionSpec) -> tuple:
        """(double_sided, printed sides per copy)."""
        if kind in (COVER, JACKET):
            double_sided = section.colors_back > 0
            return double_sided, 2 if double_sided else 1
        return True, int(section.pages)

    def impose(self, piece_w: float, piece_h: float, sheet: SheetSize) -> int:
        """
        Copies of the piece that fit the usable sheet area.
        The gripper bites along the long edge, so it comes off the short side.
        Rotation is used only when it strictly increases yield.
        """
        bleed = self.rate_card.bleed_mm
        short_side, long_side = sorted((sheet.width_mm, sheet.height_mm))
        usable_short = short_side - 2 * bleed - self.rate_card.gripper_margin_mm
        usable_long = long_side - 2 * bleed
        if usable_short <= 0 or usable_long <= 0 or piece_w <= 0 or piece_h <= 0:
            return 0
        straight = math.floor(usable_short / piece_w) * math.floor(usable_long / piece_h)
        rotated = math.floor(usable_short / piece_h) * math.floor(usable_long / piece_w)
        return rotated if rotated > straight else straight

    def net_sheets(self, n_up: int, double_sided: bool, piece_sides: int, copies: int,
                   method: PrintingMethod) -> tuple:
        """
        (forms, net sheets). Work-and-turn is one pass with double yield.
        A sheet that carries more than one copy is ganged.
        """
        if not double_sided:
            sides, up = 1, n_up
        elif method == PrintingMethod.WORK_AND_TURN:
            sides, up = 1, n_up * 2
        else:
            sides, up = 2, n_up
        page_sides_per_sheet = sides * up
        forms = math.ceil(piece_sides / page_sides_per_sheet)
        copies_per_sheet = max(1, page_sides_per_sheet // piece_sides)
        return forms, math.ceil(copies / copies_per_sheet) * forms

    def spoilage_sheets(self, net: int, forms: int, colors: int, plate_changes: int,
                        quantity: int) -> int:
        """
        Extra sheets for makeready and running waste.
        Rate rises with colour count and plate changes, falls with run length.
        """
        if net <= 0:
            return 0
        band = self.rate_card.spoilage_band(quantity)
        value = band.value_for(colors)
        change_waste = self.rate_card.plate_change_waste_sheets * plate_changes
        if band.is_percentage:
            rate = value / 100.0 + change_waste / net
        else:
            rate = (value * forms + change_waste) / net
        return self.ceil_units(net * rate)

    def _machine_for(self, section: SectionSpec, key: str):
        machine_id = section.machine_id or self.rate_card.default_machine_id
        machine = self.rate_card.get_machine(machine_id)
        if machine is None:
            self.fail(f"Unknown machine '{machine_id}'", key)
        return machine

    def _choose_sheet(self, key, section, machine, piece_w, piece_h,
                      double_sided, piece_sides, copies) -> tuple:
        """
        The section's own sheet size when the rate card knows it; otherwise
        the press-compatible sheet that uses the least paper (tie: fewer sheets).
        """
        if section.paper_size_label:
            sheet = self.rate_card.get_sheet(section.paper_size_label)
            if sheet is not None:
                n_up = self.impose(piece_w, piece_h, sheet)
                if n_up == 0:
                    self.fail(
                        f"{piece_w:.0f}x{piece_h:.0f}mm piece does not fit sheet {sheet.label}",
                        key,
                    )
                return sheet, n_up
            logger.warning("Unknown sheet size '%s' for %s, choosing automatically",
                           section.paper_size_label, key)

        best = None
        for sheet in self.rate_card.sheet_sizes:
            if not machine.fits(sheet):
                continue
            n_up = self.impose(piece_w, piece_h, sheet)
            if n_up == 0:
                continue
            _, net = self.net_sheets(n_up, double_sided, piece_sides, copies,
                                     section.printing_method)
            score = (net * sheet.area_sqm, net)
            if best is None or score < best[0]:
                best = (score, sheet, n_up)
        if best is None:
            self.fail(f"{piece_w:.0f}x{piece_h:.0f}mm piece does not fit any sheet on "
                      f"machine '{machine.id}'", key)
        return best[1], best[2]
