"""
Built-in form seeded into every new configuration.

Sections and fields defined here have `is_custom=False` and can never be
deleted, only hidden or edited.
"""
from typing import List

from formconfig.schema.models import FormSection

PRODUCTION_TYPE_OPTIONS = [
    {"value": "Produced", "label": "Produced"},
    {"value": "Procured", "label": "Procured"},
]

# Vendor fields only make sense for procured products
PROCURED_ONLY = {"field_key": "production_type", "value": "Procured"}

DEFAULT_SECTIONS = [
    {
        "section_key": "production_type",
        "name": "Production Type",
        "description": "Select whether this product is produced internally or procured from external suppliers",
        "collapsible": False,
        "default_expanded": True,
        "fields": [
            {"field_key": "production_type", "label": "Production Type", "type": "radio", "required": True,
             "default_value": "Produced", "options": PRODUCTION_TYPE_OPTIONS,
             "help_text": "Select whether this product is produced internally or procured from external suppliers"},
        ],
    },
    {
        "section_key": "basic",
        "name": "Basic Information",
        "description": "Essential product information and categorization",
        "default_expanded": True,
        "fields": [
            {"field_key": "product_name", "label": "Product Name", "type": "text",
             "placeholder": "Enter product name", "help_text": "The commercial name of the product"},
            {"field_key": "product_line", "label": "Product Line", "type": "text", "required": True,
             "default_value": "Chemical Products", "placeholder": "Enter product line", "grid_column": "half"},
            {"field_key": "sbu", "label": "Strategic Business Unit (SBU)", "type": "select", "required": True,
             "default_value": "P90", "grid_column": "half", "options": [
                 {"value": "775", "label": "SBU 775"},
                 {"value": "P90", "label": "SBU P90"},
                 {"value": "440", "label": "SBU 440"},
                 {"value": "P87", "label": "SBU P87"},
                 {"value": "P89", "label": "SBU P89"},
                 {"value": "P85", "label": "SBU P85"},
             ]},
            {"field_key": "priority", "label": "Priority", "type": "select", "required": True,
             "default_value": "MEDIUM", "grid_column": "half", "options": [
                 {"value": "LOW", "label": "Low"},
                 {"value": "MEDIUM", "label": "Medium"},
                 {"value": "HIGH", "label": "High"},
                 {"value": "URGENT", "label": "Urgent"},
             ]},
            {"field_key": "primary_plant", "label": "Primary Plant", "type": "text",
             "placeholder": "Enter primary manufacturing plant", "grid_column": "half"},
        ],
    },
    {
        "section_key": "vendor",
        "name": "Vendor Information",
        "description": "External supplier and vendor details (shown only for procured products)",
        "default_expanded": True,
        "fields": [
            {"field_key": "vendor_name", "label": "Vendor Name", "type": "text",
             "placeholder": "Enter vendor name", "grid_column": "half", "visible_when": PROCURED_ONLY},
            {"field_key": "vendor_product_name", "label": "Vendor Product Name", "type": "text",
             "placeholder": "Enter vendor product name", "grid_column": "half", "visible_when": PROCURED_ONLY},
            {"field_key": "vendor_sap_number", "label": "Vendor SAP Number", "type": "text",
             "placeholder": "Enter vendor SAP number", "grid_column": "half", "visible_when": PROCURED_ONLY},
            {"field_key": "vendor_product_number", "label": "Vendor Product Number", "type": "text",
             "placeholder": "Enter vendor product number", "grid_column": "half", "visible_when": PROCURED_ONLY},
        ],
    },
    {
        "section_key": "chemical",
        "name": "Chemical Properties",
        "description": "Chemical composition and physical properties",
        "fields": [
            {"field_key": "cas_number", "label": "CAS Number", "type": "text", "required": True,
             "placeholder": "e.g., 64-17-5", "help_text": "Chemical Abstracts Service registry number",
             "grid_column": "half", "validation": {"pattern": r"^\d{1,7}-\d{2}-\d$"}},
            {"field_key": "molecular_formula", "label": "Molecular Formula", "type": "text",
             "placeholder": "e.g., C2H6O", "grid_column": "half"},
            {"field_key": "molecular_weight", "label": "Molecular Weight", "type": "number",
             "placeholder": "e.g., 46.07", "help_text": "Molecular weight in g/mol",
             "grid_column": "half", "validation": {"min": 0, "step": 0.01}},
            {"field_key": "physical_state", "label": "Physical State", "type": "select",
             "default_value": "Solid", "grid_column": "half", "options": [
                 {"value": "Solid", "label": "Solid"},
                 {"value": "Liquid", "label": "Liquid"},
                 {"value": "Gas", "label": "Gas"},
                 {"value": "Powder", "label": "Powder"},
                 {"value": "Crystal", "label": "Crystal"},
             ]},
        ],
    },
    {
        "section_key": "pricing",
        "name": "Pricing & Margins",
        "description": "Cost structure and pricing calculations",
        "fields": [
            {"field_key": "base_unit", "label": "Base Costing Unit", "type": "select", "required": True,
             "default_value": "g", "grid_column": "half", "options": [
                 {"value": "mg", "label": "mg (milligram)"},
                 {"value": "g", "label": "g (gram)"},
                 {"value": "kg", "label": "kg (kilogram)"},
                 {"value": "mL", "label": "mL (milliliter)"},
                 {"value": "L", "label": "L (liter)"},
                 {"value": "units", "label": "units"},
             ]},
            {"field_key": "raw_material_cost_per_unit", "label": "Raw Material Cost ($/unit)", "type": "number",
             "default_value": 0.5, "grid_column": "third", "validation": {"min": 0, "step": 0.01}},
            {"field_key": "packaging_cost", "label": "Packaging Cost ($/unit)", "type": "number",
             "default_value": 2.5, "grid_column": "third", "validation": {"min": 0, "step": 0.01}},
            {"field_key": "labor_overhead_cost", "label": "Labor & Overhead ($/unit)", "type": "number",
             "default_value": 5.0, "grid_column": "third", "validation": {"min": 0, "step": 0.01}},
            {"field_key": "target_margin", "label": "Target Margin (%)", "type": "number",
             "default_value": 50, "grid_column": "half", "validation": {"min": 0, "max": 100, "step": 1}},
        ],
    },
    {
        "section_key": "corpbase",
        "name": "CorpBase Website Information",
        "description": "Product information for corporate website and marketing",
        "fields": [
            {"field_key": "product_description", "label": "Product Description", "type": "textarea",
             "placeholder": "Detailed product description..."},
            {"field_key": "website_title", "label": "Website Title", "type": "text",
             "placeholder": "SEO-optimized title"},
            {"field_key": "meta_description", "label": "Meta Description", "type": "textarea",
             "placeholder": "Brief description for search engines (150-160 characters)",
             "validation": {"max_length": 160}},
            {"field_key": "product_url", "label": "Product Page URL", "type": "url",
             "placeholder": "https://..."},
        ],
    },
]


def default_sections() -> List[FormSection]:
    """Fresh copy of the built-in sections with contiguous 1..N ordering."""
    sections = []
    for s_idx, raw in enumerate(DEFAULT_SECTIONS, start=1):
        fields = [
            {**f, "order": f_idx, "is_custom": False}
            for f_idx, f in enumerate(raw["fields"], start=1)
        ]
        sections.append(FormSection.model_validate({**raw, "order": s_idx, "is_custom": False, "fields": fields}))
    return sections
