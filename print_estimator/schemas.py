"""
Estimation data model.

EstimationInput is the job specification fed to the engine: book spec,
up to five quantity tiers, printable sections, binding, finishing,
packing, delivery, pre-press and pricing parameters.

EstimationResult is one frozen record per active quantity tier.

Counts are declared as floats so raw form input (fractional, negative,
NaN) survives parsing; the normalizer floors and clamps them.
"""

import enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .config import settings


class PrintingMethod(str, enum.Enum):
    SHEETWISE = "sheetwise"
    WORK_AND_TURN = "work_and_turn"
    PERFECTING = "perfecting"


class DeliveryType(str, enum.Enum):
    DOMESTIC = "domestic"
    EX_WORKS = "ex_works"
    FOB = "fob"
    CIF = "cif"
    DDP = "ddp"


class FreightMode(str, enum.Enum):
    SEA = "sea"
    AIR = "air"
    ROAD = "road"
    COURIER = "courier"


class PricingMode(str, enum.Enum):
    MARGIN = "margin"
    MARKUP = "markup"


class Turnaround(str, enum.Enum):
    STANDARD = "standard"
    RUSH = "rush"
    EXPRESS = "express"


# --- Input ---

class BookSpec(BaseModel):
    width_mm: float = 0.0
    height_mm: float = 0.0
    # Computed by the engine, never read as input
    spine_thickness: float = 0.0
    spine_with_board: float = 0.0
    total_pages: float = 0.0


class SectionSpec(BaseModel):
    enabled: bool = True
    label: str = ""
    pages: float = 0
    colors_front: float = 4
    colors_back: float = 4
    paper_type: str = ""
    paper_code: str = ""
    gsm: float = 0
    paper_size_label: str = ""
    machine_id: str = ""
    printing_method: PrintingMethod = PrintingMethod.SHEETWISE
    plate_changes: float = 0


class CoverSpec(SectionSpec):
    pages: float = 4
    colors_back: float = 0
    self_cover: bool = False
    fold_type: str = "standard"


class JacketSpec(SectionSpec):
    enabled: bool = False
    pages: float = 1
    colors_back: float = 0
    flap_width_mm: float = 0.0
    extra_jackets_percent: float = 0.0
    lamination_type: str = ""
    gold_blocking_front: bool = False
    gold_blocking_spine: bool = False
    spot_uv: bool = False


class EndleavesSpec(SectionSpec):
    enabled: bool = False
    pages: float = 8
    colors_front: float = 0
    colors_back: float = 0
    endleaf_type: str = "plain"
    self_endleaves: bool = False


class BindingSpec(BaseModel):
    primary_binding: str = "perfect_binding"
    pur_binding: bool = False
    back_shape: str = "square"
    board_type: str = ""
    board_thickness_mm: float = 0.0
    board_origin: str = ""
    covering_material_id: str = ""
    case_material: str = ""
    ribbon_markers: float = 0
    head_tail_band: bool = False
    gilt_edging: bool = False
    foam_padding: bool = False
    round_cornering: bool = False
    rounding_backing: bool = False
    gold_blocking_front: bool = False
    gold_blocking_spine: bool = False
    embossing_front: bool = False
    case_lamination: bool = False

    def enabled_options(self) -> Dict[str, int]:
        """Option id -> count for every option switched on."""
        flags = {
            "pur_binding": self.pur_binding,
            "head_tail_band": self.head_tail_band,
            "gilt_edging": self.gilt_edging,
            "foam_padding": self.foam_padding,
            "round_cornering": self.round_cornering,
            "rounding_backing": self.rounding_backing,
            "gold_blocking_front": self.gold_blocking_front,
            "gold_blocking_spine": self.gold_blocking_spine,
            "embossing_front": self.embossing_front,
            "case_lamination": self.case_lamination,
        }
        options = {key: 1 for key, on in flags.items() if on}
        if self.ribbon_markers > 0:
            options["ribbon_markers"] = int(self.ribbon_markers)
        return options


class FinishingOperation(BaseModel):
    enabled: bool = False
    variant: str = ""
    count: float = 1


class AdditionalFinishing(BaseModel):
    description: str
    setup_cost: float = 0.0
    cost_per_copy: float = 0.0


class FinishingSpec(BaseModel):
    operations: Dict[str, FinishingOperation] = Field(default_factory=dict)
    additional: List[AdditionalFinishing] = Field(default_factory=list)


class PackingAddOn(BaseModel):
    enabled: bool = False
    rate: float = 0.0  # 0 = rate card


class PackingSpec(BaseModel):
    use_cartons: bool = True
    carton_type: str = "5_ply"
    carton_rate: float = 0.0
    custom_books_per_carton: float = 0
    use_pallets: bool = True
    pallet_type: str = "standard"
    pallet_rate: float = 0.0
    add_ons: Dict[str, PackingAddOn] = Field(default_factory=dict)
    weight_per_copy_grams: float = 0.0
    containerization: bool = False
    container_type: str = "20ft"
    max_carton_weight_kg: float = 0.0
    max_pallet_height_mm: float = 0.0
    max_pallet_weight_kg: float = 0.0


class DeliverySpec(BaseModel):
    destination_id: str = ""
    delivery_type: DeliveryType = DeliveryType.DOMESTIC
    freight_mode: FreightMode = FreightMode.ROAD
    local_despatches: float = 0
    overseas_despatches: float = 0
    advance_copies: float = 0
    advance_copies_air_freight: bool = True
    advance_copies_rate: float = 0.0
    customs_clearance: float = 0.0
    insurance: bool = False
    insurance_rate: float = 0.0


class PrePressSpec(BaseModel):
    epson_proofs: float = 0
    epson_rate_per_page: float = 0.0
    wet_proofs: float = 0
    wet_proof_rate_per_form: float = 0.0
    film_output: bool = False
    film_rate_per_plate: float = 0.0
    design_charges: float = 0.0


class PricingSpec(BaseModel):
    margin_percent: float = 25.0
    commission_percent: float = 0.0
    target_tph: float = 0.0
    currency: str = "INR"
    exchange_rate: float = 1.0
    volume_discount: float = 0.0
    tax_type: str = "none"
    tax_rate: Optional[float] = None  # None = rate card preset for tax_type
    includes_tax: bool = False
    pricing_mode: PricingMode = PricingMode.MARGIN
    turnaround: Turnaround = Turnaround.STANDARD


class AdditionalCost(BaseModel):
    description: str
    category: str = "other"
    is_per_copy: bool = False
    cost_per_copy: float = 0.0
    total_cost: float = 0.0


class EstimationInput(BaseModel):
    job_title: str = ""
    customer_name: str = ""
    reference_number: str = ""
    estimated_by: str = ""
    estimation_date: str = ""
    po_number: str = ""
    notes: str = ""

    book_spec: BookSpec = Field(default_factory=BookSpec)
    quantities: List[float] = Field(default_factory=list)
    text_sections: List[SectionSpec] = Field(default_factory=list)
    cover: CoverSpec = Field(default_factory=CoverSpec)
    jacket: JacketSpec = Field(default_factory=JacketSpec)
    endleaves: EndleavesSpec = Field(default_factory=EndleavesSpec)
    binding: BindingSpec = Field(default_factory=BindingSpec)
    finishing: FinishingSpec = Field(default_factory=FinishingSpec)
    packing: PackingSpec = Field(default_factory=PackingSpec)
    delivery: DeliverySpec = Field(default_factory=DeliverySpec)
    pre_press: PrePressSpec = Field(default_factory=PrePressSpec)
    pricing: PricingSpec = Field(default_factory=PricingSpec)
    additional_costs: List[AdditionalCost] = Field(default_factory=list)

    @field_validator("quantities")
    @classmethod
    def at_most_max_tiers(cls, v):
        if len(v) > settings.MAX_QUANTITY_TIERS:
            raise ValueError(f"At most {settings.MAX_QUANTITY_TIERS} quantity tiers are allowed")
        return v


# --- Output ---

class SectionCost(BaseModel):
    section: str
    label: str = ""
    sheet_size: str = ""
    n_up: int = 0
    forms: int = 0
    net_sheets: int = 0
    spoilage_sheets: int = 0
    gross_sheets: int = 0
    weight_kg: float = 0.0
    rate_per_kg: float = 0.0
    cost: float = 0.0

    class Config:
        frozen = True


class PressCost(BaseModel):
    section: str
    machine_id: str = ""
    plates: int = 0
    ctp_cost: float = 0.0
    running_hours: float = 0.0
    running_cost: float = 0.0
    makeready_hours: float = 0.0
    makeready_cost: float = 0.0
    printing_cost: float = 0.0

    class Config:
        frozen = True


class EstimationResult(BaseModel):
    quantity: int
    quantity_index: int

    paper_costs: List[SectionCost] = Field(default_factory=list)
    printing_costs: List[PressCost] = Field(default_factory=list)

    total_paper_cost: float = 0.0
    total_printing_cost: float = 0.0
    total_ctp_cost: float = 0.0
    binding_cost: float = 0.0
    finishing_cost: float = 0.0
    packing_cost: float = 0.0
    freight_cost: float = 0.0
    prepress_cost: float = 0.0
    additional_cost: float = 0.0

    total_production_cost: float = 0.0
    total_cost_per_copy: float = 0.0
    selling_price_per_copy: float = 0.0
    total_selling_price: float = 0.0
    margin_amount: float = 0.0
    commission_amount: float = 0.0
    turnaround_surcharge: float = 0.0
    discount_amount: float = 0.0
    tax_amount: float = 0.0
    grand_total: float = 0.0
    currency: str = "INR"
    base_currency: str = "INR"
    exchange_rate: float = 1.0

    spine_thickness: float = 0.0
    spine_with_board: float = 0.0
    weight_per_book_grams: float = 0.0
    total_weight_kg: float = 0.0
    books_per_carton: int = 0
    total_cartons: int = 0
    cartons_per_pallet: int = 0
    total_pallets: int = 0
    running_hours: float = 0.0
    makeready_hours: float = 0.0

    binding_breakdown: Dict[str, float] = Field(default_factory=dict)
    finishing_breakdown: Dict[str, float] = Field(default_factory=dict)
    packing_breakdown: Dict[str, float] = Field(default_factory=dict)
    freight_breakdown: Dict[str, float] = Field(default_factory=dict)
    prepress_breakdown: Dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


class ValidationResponse(BaseModel):
    valid: bool
    errors: List[str] = []
