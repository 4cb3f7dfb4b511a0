"""
Rate card — reference data for the estimation engine.

Every coefficient the calculators use lives here: sheet sizes, paper rates,
bulk factors, the spoilage chart, press machines, binding curves, finishing,
packing and freight rates. A RateCard is read-only input; the engine never
mutates it.

Lookup order for the active card:
1. JSON file named by settings.RATE_CARD_PATH (if set)
2. DEFAULT_RATE_CARD built from the tables in this file

All money is in the base currency (INR unless overridden).
"""

import json
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .config import settings
from .exceptions import RateCardError

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4


# --- Sheets ---

class SheetSize(BaseModel):
    label: str
    width_in: float
    height_in: float

    @property
    def width_mm(self) -> float:
        return self.width_in * MM_PER_INCH

    @property
    def height_mm(self) -> float:
        return self.height_in * MM_PER_INCH

    @property
    def area_sqm(self) -> float:
        return (self.width_mm / 1000.0) * (self.height_mm / 1000.0)


class PaperRate(BaseModel):
    paper_type: str
    code: str = ""
    gsm: float
    rate_per_kg: float


class SpoilageBand(BaseModel):
    """
    One row of the wastage chart.

    Values are sheets per form, or a percentage of net sheets when
    is_percentage is set (the open-ended top band).
    """
    max_quantity: Optional[int] = None
    four_color: float
    two_color: float
    one_color: float
    is_percentage: bool = False

    def value_for(self, color_count: int) -> float:
        if color_count >= 4:
            return self.four_color
        if color_count >= 2:
            return self.two_color
        return self.one_color


class Machine(BaseModel):
    id: str
    name: str
    speed_sph: float
    hourly_rate: float
    ctp_rate: float
    makeready_cost: float = 0.0
    makeready_hours: float = 0.0
    max_sheet_width_in: float = 0.0
    max_sheet_height_in: float = 0.0

    def fits(self, sheet: SheetSize) -> bool:
        """Sheet fits the press bed in either orientation. 0 limits mean unlimited."""
        if not self.max_sheet_width_in or not self.max_sheet_height_in:
            return True
        short_side, long_side = sorted((sheet.width_in, sheet.height_in))
        max_short, max_long = sorted((self.max_sheet_width_in, self.max_sheet_height_in))
        return short_side <= max_short and long_side <= max_long


# --- Binding ---

class RateBand(BaseModel):
    max_quantity: Optional[int] = None
    rate_per_copy: float = 0.0
    rate_per_signature: float = 0.0


class BindingMethod(BaseModel):
    name: str
    boarded: bool = False
    bands: List[RateBand]

    def band_for(self, quantity: int) -> RateBand:
        for band in self.bands:
            if band.max_quantity is None or quantity <= band.max_quantity:
                return band
        return self.bands[-1]


class BoardType(BaseModel):
    name: str
    thickness_mm: float
    sheet_width_in: float = 31.0
    sheet_height_in: float = 41.0
    rate_per_sheet: float


class OptionRate(BaseModel):
    """Binding option: per copy (× count), per-job setup, or % of base binding."""
    per_copy: float = 0.0
    setup: float = 0.0
    percent_of_base: float = 0.0


# --- Finishing ---

class FinishingRate(BaseModel):
    basis: str = "copy"             # "area" (per m²) | "copy"
    applies_to: str = "cover"       # section the area is measured on
    setup: float = 0.0
    rate: float
    variants: Dict[str, float] = Field(default_factory=dict)
    variant_setup: Dict[str, float] = Field(default_factory=dict)

    def rate_for(self, variant: str) -> float:
        return self.variants.get(variant, self.rate) if variant else self.rate

    def setup_for(self, variant: str) -> float:
        return self.variant_setup.get(variant, self.setup) if variant else self.setup


# --- Packing ---

class PackingAddOnRate(BaseModel):
    basis: str = "per_carton"       # per_carton | per_copy | per_pallet
    rate: float


class PackingRates(BaseModel):
    carton_types: Dict[str, float]
    pallet_types: Dict[str, float]
    add_ons: Dict[str, PackingAddOnRate]
    max_carton_weight_kg: float = 14.0
    max_pallet_height_mm: float = 1500.0
    max_pallet_weight_kg: float = 800.0
    pallet_length_mm: float = 1200.0
    pallet_width_mm: float = 1000.0
    pallet_height_mm: float = 150.0
    pallet_tare_kg: float = 25.0
    carton_clearance_mm: float = 5.0
    carton_wall_mm: float = 3.0
    carton_board_kg_per_sqm: float = 0.45
    book_density_g_per_cm3: float = 0.9
    container_capacity_cbm: float = 28.0
    container_max_kg: float = 21000.0


# --- Freight ---

class Destination(BaseModel):
    id: str
    name: str
    country: str = ""
    overseas: bool = False
    sea_per_container: float = 0.0
    sea_per_pallet: float = 0.0
    surface_per_container: float = 0.0
    surface_per_pallet: float = 0.0
    surface_per_truck: float = 0.0
    surface_per_ton: float = 0.0
    air_per_kg: float = 0.0
    courier_per_kg: float = 0.0
    clearance: float = 0.0
    cha_charges: float = 0.0
    port_handling: float = 0.0
    documentation: float = 0.0
    bl_charges: float = 0.0
    insurance_percent: float = 0.0

    @property
    def per_consignment_charges(self) -> float:
        return self.cha_charges + self.port_handling + self.documentation + self.bl_charges


class FreightRates(BaseModel):
    fuel_surcharge_percent: float = 15.0
    air_kg_per_cbm: float = 167.0
    courier_kg_per_cbm: float = 200.0
    road_kg_per_cbm: float = 250.0
    local_despatch_charge: float = 750.0
    default_air_per_kg: float = 700.0


class PrePressRates(BaseModel):
    epson_per_page: float = 116.0
    wet_proof_per_form: float = 2500.0
    film_per_plate: float = 450.0


# --- Default tables ---

SHEET_SIZES = [
    ("23x36", 23, 36), ("25x36", 25, 36), ("28x40", 28, 40), ("20x30", 20, 30),
    ("22x28", 22, 28), ("18x23", 18, 23), ("22x35", 22, 35), ("24x36", 24, 36),
    ("30x39", 30, 39), ("28x38", 28, 38),
]

# (paper type, code, gsm, rate per kg)
PAPER_RATES = [
    ("Matt Art Paper", "matt", 80, 80.0),
    ("Matt Art Paper", "matt", 100, 80.0),
    ("Matt Art Paper", "matt", 130, 80.0),
    ("Matt Art Paper", "matt", 150, 80.0),
    ("Matt Art Paper", "matt", 170, 80.0),
    ("Matt Art Paper", "matt", 200, 80.0),
    ("Matt Art Paper", "matt", 250, 80.0),
    ("Matt Art Paper", "matt", 300, 80.0),
    ("Glossy Art Paper", "gloss", 130, 82.0),
    ("Glossy Art Paper", "gloss", 150, 82.0),
    ("Glossy Art Paper", "gloss", 200, 82.0),
    ("Woodfree Paper (CW)", "CW", 80, 76.5),
    ("Woodfree Paper (CW)", "CW", 100, 76.5),
    ("Holmen Bulky", "HB", 60, 73.0),
    ("Holmen Bulky", "HB", 70, 73.0),
    ("Holmen Bulky", "HB", 80, 73.0),
    ("White Uncoated", "map", 90, 82.0),
    ("White Uncoated", "map", 100, 82.0),
    ("White Uncoated", "map", 120, 82.0),
    ("White Uncoated", "map", 140, 82.0),
    ("Art Card", "Art card", 300, 96.0),
    ("C1S Art Card", "C1s", 300, 98.0),
    ("C1S Art Card", "C1s", 350, 98.0),
    ("Woodfree Paper (Hibulk)", "ML70", 70, 88.0),
    ("Stora creamy", "Scream", 80, 84.0),
    ("Woodfree white offset paper", "SP", 70, 91.0),
    ("Woodfree white offset paper", "SP", 80, 91.0),
]

# Caliper multiplier per substrate: caliper mm = gsm / 1000 × bulk factor
BULK_FACTORS = {
    "matt": 1.0,
    "gloss": 0.9,
    "CW": 1.4,
    "HB": 2.3,
    "Holmen Bulky": 2.3,
    "Holmen Creamy": 2.3,
    "map": 1.3,
    "White Uncoated": 1.3,
    "SP": 1.3,
    "ML70": 2.0,
    "Hibulk": 2.0,
    "Art card": 1.2,
    "C1s": 1.6,
    "Scream": 2.4,
    "Stora creamy": 2.4,
    "Wibalin": 1.25,
}

# (max quantity, 4-col, 2-col, 1-col): sheets per form. Above 50000 it is a percentage of net
WASTAGE_CHART = [
    (1000, 200, 150, 100),
    (2000, 250, 200, 150),
    (3000, 300, 250, 200),
    (5000, 350, 300, 250),
    (8000, 400, 350, 300),
    (10000, 500, 400, 350),
    (15000, 600, 500, 400),
    (20000, 750, 600, 500),
    (30000, 1000, 750, 600),
    (50000, 1250, 1000, 750),
]
WASTAGE_ABOVE_TOP_BAND = (2.5, 2.0, 1.5)

MACHINES = [
    Machine(id="fav", name="Favourit (FAV)", speed_sph=8000, hourly_rate=3500,
            ctp_rate=247, makeready_cost=1500, makeready_hours=0.5,
            max_sheet_width_in=28, max_sheet_height_in=40),
    Machine(id="rekord_aq", name="Rekord (With AQ)", speed_sph=5500, hourly_rate=5500,
            ctp_rate=403, makeready_cost=1800, makeready_hours=0.5,
            max_sheet_width_in=28, max_sheet_height_in=40),
    Machine(id="rekord_no_aq", name="Rekord (Without AQ)", speed_sph=5500, hourly_rate=4500,
            ctp_rate=403, makeready_cost=1800, makeready_hours=0.5,
            max_sheet_width_in=28, max_sheet_height_in=40),
    Machine(id="rmgt", name="RMGT", speed_sph=7000, hourly_rate=3000,
            ctp_rate=271, makeready_cost=1200, makeready_hours=0.4,
            max_sheet_width_in=25, max_sheet_height_in=36),
]

PERFECT_BINDING_RATES = [
    # (max qty, rate per 16pp, gathering per signature)
    (3000, 0.30, 0.04),
    (5000, 0.25, 0.03),
    (8000, 0.22, 0.025),
    (10000, 0.20, 0.02),
    (15000, 0.18, 0.018),
    (20000, 0.16, 0.015),
    (None, 0.14, 0.012),
]

SADDLE_STITCH_RATES = [(5000, 0.40), (10000, 0.30), (20000, 0.25), (None, 0.20)]
SADDLE_WIRE_PER_COPY = 0.02

# Hardcase line items per copy
HARDCASE_SEWING_PER_SECTION = 0.11
HARDCASE_FOLDING_PER_SECTION = 0.04
HARDCASE_PER_COPY = {
    "tipping_endleaves": 0.15,
    "back_lining": 0.35,
    "casing_in": 3.75,
    "pressing": 0.25,
    "glue": 2.10,
    "trimming": 0.08,
    "inspection": 0.15,
}

COVERING_MATERIAL_MULTIPLIERS = {
    "cm_printed": 1.0,
    "cm_arlin": 1.0,
    "cm_baladek": 1.06,
    "cm_mundior": 1.12,
    "cm_latex": 1.08,
    "cm_imcloth": 1.08,
    "cm_buckram": 1.15,
    "cm_permalex": 1.15,
    "cm_wibalin": 1.25,
    "cm_pu_skiver": 1.25,
}

CASE_MATERIAL_MULTIPLIERS = {
    "paper": 1.0,
    "printed_paper": 1.0,
    "cloth": 1.15,
    "quarter_bound": 1.25,
    "leather": 1.6,
}

BOARD_TYPES = {
    "imported_2mm": BoardType(name="Imported 2mm", thickness_mm=2.0, rate_per_sheet=74.62),
    "imported_2.5mm": BoardType(name="Imported 2.5mm", thickness_mm=2.5, rate_per_sheet=93.27),
    "imported_3mm": BoardType(name="Imported 3mm", thickness_mm=3.0, rate_per_sheet=112.0),
    "indian_2mm": BoardType(name="Indian 2mm", thickness_mm=2.0, rate_per_sheet=21.32),
    "indian_2.5mm": BoardType(name="Indian 2.5mm", thickness_mm=2.5, rate_per_sheet=26.64),
    "indian_3mm": BoardType(name="Indian 3mm", thickness_mm=3.0, rate_per_sheet=31.98),
}

BINDING_OPTIONS = {
    "pur_binding": OptionRate(percent_of_base=40.0),
    "head_tail_band": OptionRate(per_copy=0.18),
    "ribbon_markers": OptionRate(per_copy=0.32),
    "gilt_edging": OptionRate(per_copy=2.50),
    "foam_padding": OptionRate(per_copy=8.84),
    "round_cornering": OptionRate(per_copy=0.12),
    "rounding_backing": OptionRate(per_copy=0.30),
    "gold_blocking_front": OptionRate(per_copy=0.30, setup=3500),
    "gold_blocking_spine": OptionRate(per_copy=0.25, setup=3500),
    "embossing_front": OptionRate(per_copy=0.45, setup=2500),
    "case_lamination": OptionRate(per_copy=0.55),
}

# Area rates are per m² of press sheet for the section they apply to
LAMINATION_VARIANTS = {"gloss": 5.85, "matt": 5.85, "velvet": 9.0, "anti_scratch": 10.5}

FINISHING_RATES = {
    "cover_lamination": FinishingRate(basis="area", applies_to="cover", rate=5.85,
                                      variants=LAMINATION_VARIANTS),
    "jacket_lamination": FinishingRate(basis="area", applies_to="jacket", rate=5.85,
                                       variants=LAMINATION_VARIANTS),
    "spot_uv_cover": FinishingRate(basis="area", applies_to="cover", rate=9.6, setup=2500),
    "spot_uv_jacket": FinishingRate(basis="area", applies_to="jacket", rate=9.6, setup=2500),
    "uv_varnish": FinishingRate(basis="area", applies_to="cover", rate=4.9, setup=2000),
    "aqueous_varnish": FinishingRate(basis="area", applies_to="cover", rate=2.6),
    "gold_blocking": FinishingRate(basis="area", applies_to="cover", rate=2.25, setup=3500,
                                   variants={"gold": 2.25, "silver": 2.25, "holographic": 3.4}),
    "embossing": FinishingRate(basis="copy", rate=0.45, setup=2500,
                               variants={"single": 0.45, "multi": 0.65}),
    "die_cutting": FinishingRate(basis="copy", rate=0.20, setup=4000,
                                 variants={"simple": 0.20, "medium": 0.30, "complex": 0.45},
                                 variant_setup={"simple": 4000, "medium": 8000, "complex": 15000}),
    "edge_gilding": FinishingRate(basis="copy", rate=2.50),
    "perforation": FinishingRate(basis="copy", rate=0.08, setup=500),
    "scoring": FinishingRate(basis="copy", rate=0.05, setup=500),
    "numbering": FinishingRate(basis="copy", rate=0.12, setup=750),
}

PACKING_ADD_ONS = {
    "stretch_wrap": PackingAddOnRate(basis="per_pallet", rate=250),
    "shrink_wrap": PackingAddOnRate(basis="per_copy", rate=1.20),
    "strapping": PackingAddOnRate(basis="per_pallet", rate=80),
    "corner_protectors": PackingAddOnRate(basis="per_pallet", rate=60),
    "polybag": PackingAddOnRate(basis="per_copy", rate=1.50),
    "kraft_wrap": PackingAddOnRate(basis="per_copy", rate=3.00),
    "banding": PackingAddOnRate(basis="per_copy", rate=0.35),
    "inner_partition": PackingAddOnRate(basis="per_carton", rate=8),
    "custom_printing": PackingAddOnRate(basis="per_carton", rate=15),
}

DESTINATIONS = [
    Destination(id="bom", name="Bombay (Mumbai)", country="India",
                surface_per_truck=14500, surface_per_ton=3000, courier_per_kg=15),
    Destination(id="nd", name="New Delhi", country="India",
                surface_per_truck=6000, surface_per_ton=400, courier_per_kg=25),
    Destination(id="ex", name="Ex Works", country="India"),
]
# Overseas rates converted to INR at the card's USD rate
_OVERSEAS = [
    # id, name, country, sea/20ft USD, sea/pallet USD, air per kg
    ("felix", "Felixstowe", "United Kingdom", 1100, 80, 700),
    ("ham", "Hamburg", "Germany", 1100, 80, 700),
    ("rot", "Rotterdam", "Netherlands", 1100, 80, 700),
    ("ny", "New York", "United States", 2350, 200, 600),
    ("mel", "Melbourne", "Australia", 1700, 150, 900),
    ("sing", "Singapore", "Singapore", 1200, 80, 750),
    ("tor", "Toronto", "Canada", 2400, 200, 900),
]
USD_TO_INR = 90.0

for _id, _name, _country, _container, _pallet, _air in _OVERSEAS:
    DESTINATIONS.append(Destination(
        id=_id, name=_name, country=_country, overseas=True,
        sea_per_container=_container * USD_TO_INR,
        sea_per_pallet=_pallet * USD_TO_INR,
        surface_per_container=19500, surface_per_pallet=1500,
        air_per_kg=_air, courier_per_kg=60,
        clearance=8500, cha_charges=3500, port_handling=3000,
        documentation=1500, bl_charges=2500, insurance_percent=0.3,
    ))

TAX_PRESETS = {"gst_print": 12.0, "gst_book": 5.0, "vat": 20.0, "none": 0.0}
TURNAROUND_MULTIPLIERS = {"standard": 1.0, "rush": 1.15, "express": 1.30}


class RateCard(BaseModel):
    """All reference data one estimation run reads."""
    base_currency: str = "INR"
    sheet_sizes: List[SheetSize]
    bleed_mm: float = 5.0  # per edge
    gripper_margin_mm: float = 12.0  # along the long (feed) edge
    paper_rates: List[PaperRate]
    default_paper_rate_per_kg: float = 80.0
    bulk_factors: Dict[str, float]
    default_bulk_factor: float = 1.0
    spoilage_chart: List[SpoilageBand]
    plate_change_waste_sheets: float = 50.0
    machines: List[Machine]
    default_machine_id: str = "fav"
    plate_change_rate: float = 250.0
    binding_methods: Dict[str, BindingMethod]
    covering_materials: Dict[str, float]
    case_materials: Dict[str, float]
    board_types: Dict[str, BoardType]
    default_board_type: str = "indian_2.5mm"
    binding_options: Dict[str, OptionRate]
    finishing: Dict[str, FinishingRate]
    packing: PackingRates
    destinations: List[Destination]
    freight: FreightRates = Field(default_factory=FreightRates)
    pre_press: PrePressRates = Field(default_factory=PrePressRates)
    default_jacket_flap_mm: float = 80.0
    tax_presets: Dict[str, float] = Field(default_factory=dict)
    turnaround_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(TURNAROUND_MULTIPLIERS))

    def get_sheet(self, label: str) -> Optional[SheetSize]:
        for sheet in self.sheet_sizes:
            if sheet.label == label:
                return sheet
        return None

    def get_machine(self, machine_id: str) -> Optional[Machine]:
        for machine in self.machines:
            if machine.id == machine_id:
                return machine
        return None

    def get_destination(self, destination_id: str) -> Optional[Destination]:
        for destination in self.destinations:
            if destination.id == destination_id:
                return destination
        return None

    def spoilage_band(self, quantity: int) -> SpoilageBand:
        for band in self.spoilage_chart:
            if band.max_quantity is None or quantity <= band.max_quantity:
                return band
        return self.spoilage_chart[-1]

    def bulk_factor(self, paper_type: str, paper_code: str = "") -> float:
        """
        Bulk factor for a paper: exact key, then case-insensitive,
        then substring of the paper name. Falls back to default_bulk_factor.
        """
        for name in (paper_code, paper_type):
            if name and name in self.bulk_factors:
                return self.bulk_factors[name]
        lowered = {k.lower(): v for k, v in self.bulk_factors.items()}
        for name in (paper_code, paper_type):
            if name and name.lower() in lowered:
                return lowered[name.lower()]
        name = (paper_type or "").lower()
        for key, value in lowered.items():
            if name and key in name:
                return value
        return self.default_bulk_factor

    def paper_rate_per_kg(self, paper_type: str, paper_code: str, gsm: float) -> float:
        """
        Rate per kg for a paper.
        1. Exact paper type / code + GSM
        2. Linear interpolation across GSM within the same paper
        3. default_paper_rate_per_kg
        """
        keys = {k.lower() for k in (paper_type, paper_code) if k}
        same_paper = [
            r for r in self.paper_rates
            if r.paper_type.lower() in keys or (r.code and r.code.lower() in keys)
        ]
        for rate in same_paper:
            if rate.gsm == gsm:
                return rate.rate_per_kg

        if same_paper:
            below = [r for r in same_paper if r.gsm < gsm]
            above = [r for r in same_paper if r.gsm > gsm]
            if below and above:
                low = max(below, key=lambda r: r.gsm)
                high = min(above, key=lambda r: r.gsm)
                span = (gsm - low.gsm) / (high.gsm - low.gsm)
                return low.rate_per_kg + span * (high.rate_per_kg - low.rate_per_kg)
            nearest = min(same_paper, key=lambda r: abs(r.gsm - gsm))
            return nearest.rate_per_kg

        logger.warning(
            "No paper rate for %s/%s %sgsm, using default %.2f/kg",
            paper_type, paper_code, gsm, self.default_paper_rate_per_kg,
        )
        return self.default_paper_rate_per_kg


def _binding_methods() -> Dict[str, BindingMethod]:
    sewing = HARDCASE_SEWING_PER_SECTION + HARDCASE_FOLDING_PER_SECTION
    return {
        "perfect_binding": BindingMethod(name="Perfect Binding", bands=[
            RateBand(max_quantity=qty, rate_per_signature=per16 + gather)
            for qty, per16, gather in PERFECT_BINDING_RATES
        ]),
        "section_sewn_perfect": BindingMethod(name="Section Sewn Perfect", bands=[
            RateBand(max_quantity=qty, rate_per_signature=per16 + gather + sewing)
            for qty, per16, gather in PERFECT_BINDING_RATES
        ]),
        "saddle_stitching": BindingMethod(name="Saddle Stitching", bands=[
            RateBand(max_quantity=qty, rate_per_copy=rate + SADDLE_WIRE_PER_COPY)
            for qty, rate in SADDLE_STITCH_RATES
        ]),
        "case_binding": BindingMethod(name="Section Sewn Hardcase", boarded=True, bands=[
            RateBand(rate_per_copy=sum(HARDCASE_PER_COPY.values()), rate_per_signature=sewing),
        ]),
        "wire_o": BindingMethod(name="Wire-O", bands=[RateBand(rate_per_copy=0.95)]),
        "spiral": BindingMethod(name="Spiral", bands=[RateBand(rate_per_copy=0.70)]),
        "lay_flat": BindingMethod(name="Lay-Flat", bands=[
            RateBand(rate_per_copy=0.50, rate_per_signature=0.39),
        ]),
    }


def build_default_rate_card() -> RateCard:
    chart = [
        SpoilageBand(max_quantity=qty, four_color=c4, two_color=c2, one_color=c1)
        for qty, c4, c2, c1 in WASTAGE_CHART
    ]
    top4, top2, top1 = WASTAGE_ABOVE_TOP_BAND
    chart.append(SpoilageBand(four_color=top4, two_color=top2, one_color=top1,
                              is_percentage=True))
    return RateCard(
        base_currency=settings.BASE_CURRENCY,
        sheet_sizes=[SheetSize(label=l, width_in=w, height_in=h) for l, w, h in SHEET_SIZES],
        paper_rates=[
            PaperRate(paper_type=t, code=c, gsm=g, rate_per_kg=r)
            for t, c, g, r in PAPER_RATES
        ],
        bulk_factors=dict(BULK_FACTORS),
        spoilage_chart=chart,
        machines=list(MACHINES),
        binding_methods=_binding_methods(),
        covering_materials=dict(COVERING_MATERIAL_MULTIPLIERS),
        case_materials=dict(CASE_MATERIAL_MULTIPLIERS),
        board_types=dict(BOARD_TYPES),
        binding_options=dict(BINDING_OPTIONS),
        finishing=dict(FINISHING_RATES),
        packing=PackingRates(
            carton_types={"3_ply": 45.0, "5_ply": 65.0},
            pallet_types={"standard": 1350.0, "heat_treated": 1600.0, "euro": 1500.0},
            add_ons=dict(PACKING_ADD_ONS),
        ),
        destinations=list(DESTINATIONS),
        tax_presets=dict(TAX_PRESETS),
        turnaround_multipliers=dict(TURNAROUND_MULTIPLIERS),
    )


DEFAULT_RATE_CARD = build_default_rate_card()


def load_rate_card(path: str) -> RateCard:
    """Load a rate card from JSON. Raises RateCardError on a missing or malformed file."""
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RateCardError(f"Could not read rate card at {path}", {"error": str(e)}) from e
    try:
        card = RateCard.model_validate(data)
    except ValidationError as e:
        raise RateCardError(f"Invalid rate card at {path}", {"error": str(e)}) from e
    logger.info("Loaded rate card from %s (%d machines, %d destinations)",
                path, len(card.machines), len(card.destinations))
    return card


def get_active_rate_card() -> RateCard:
    """Rate card named by settings, or the built-in default."""
    if settings.RATE_CARD_PATH:
        return load_rate_card(settings.RATE_CARD_PATH)
    return DEFAULT_RATE_CARD
