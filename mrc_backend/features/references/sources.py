"""
Reference-bearing fields of the document collections.

Each source is an array inside a document; entries are either objects with a
URL field (and optionally an embedded payload field) or bare strings.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

NamingStyle = Literal["entity", "sequence", "attachment"]


@dataclass(frozen=True)
class ReferenceSource:
    name: str
    entity_type: str
    collection: str
    array_path: str
    field_label: str
    value_field: Optional[str] = None
    inline_field: Optional[str] = None
    mime_field: Optional[str] = None
    reconcile: bool = False
    upload_folder: str = ""
    naming: NamingStyle = "entity"
    name_kind: str = ""

    def field_path(self, position: int) -> str:
        base = f"{self.field_label}[{int(position)}]"
        return f"{base}.{self.value_field}" if self.value_field else base

    def entry_path(self, position: int) -> str:
        return f"{self.array_path}[{int(position)}]"

    def value_path(self, position: int) -> str:
        entry = self.entry_path(position)
        return f"{entry}.{self.value_field}" if self.value_field else entry

    def inline_paths(self, position: int) -> Tuple[str, ...]:
        entry = self.entry_path(position)
        return tuple(f"{entry}.{f}" for f in (self.inline_field, self.mime_field) if f)

    def projection_sql(self, inline_min_length: int, delivery_marker: str = "") -> str:
        """
        Bulk read of one source. Embedded payloads are reduced to flags inside
        SQLite so they are never materialized in Python.

        A long value that contains `delivery_marker` is a store URL and is
        returned as is.
        """
        if self.value_field:
            val = f"json_extract(e.value, '$.{self.value_field}')"
            entry_type = "object"
        else:
            val = "e.value"
            entry_type = "text"
        long_expr = f"length({val}) > {int(inline_min_length)}"
        if delivery_marker:
            marker = delivery_marker.replace("'", "''")
            long_expr = f"({long_expr} AND instr({val}, '{marker}') = 0)"
        inline_expr = f"(substr({val}, 1, 5) = 'data:' OR {long_expr})"
        if self.inline_field:
            has_inline = f"(COALESCE(length(json_extract(e.value, '$.{self.inline_field}')), 0) > 0)"
        else:
            has_inline = "0"
        return (
            "SELECT d.id AS entity_id, e.key AS position, "
            f"CASE WHEN {inline_expr} THEN NULL ELSE {val} END AS value, "
            f"CASE WHEN {inline_expr} THEN 1 ELSE 0 END AS value_inline, "
            f"CASE WHEN {has_inline} THEN 1 ELSE 0 END AS has_inline "
            f"FROM {self.collection} AS d, json_each(d.doc, '{self.array_path}') AS e "
            f"WHERE json_type(d.doc, '{self.array_path}') = 'array' AND e.type = '{entry_type}' "
            "ORDER BY d.id, e.key"
        )


PRODUCT_GALLERY = ReferenceSource(
    name="product_gallery",
    entity_type="product",
    collection="products",
    array_path="$.gallery",
    field_label="gallery",
    value_field="url",
    inline_field="data",
    mime_field="mimeType",
    reconcile=True,
    upload_folder="products",
    naming="entity",
    name_kind="product",
)

SLIDESHOW = ReferenceSource(
    name="slideshow",
    entity_type="slideshow",
    collection="slideshow",
    array_path="$.slideshow",
    field_label="slideshow",
    value_field="image",
    reconcile=True,
    upload_folder="slideshow",
    naming="sequence",
    name_kind="slideshow",
)

ORDER_ITEMS = ReferenceSource(
    name="order_items",
    entity_type="order",
    collection="orders",
    array_path="$.items",
    field_label="items",
    value_field="image",
    upload_folder="orders",
    naming="entity",
    name_kind="order",
)

ORDER_DESIGN_FILES = ReferenceSource(
    name="order_design_files",
    entity_type="order",
    collection="orders",
    array_path="$.customDesign.files",
    field_label="customDesign.files",
    upload_folder="design-files",
    naming="attachment",
    name_kind="design",
)

REVIEW_ATTACHMENTS = ReferenceSource(
    name="review_attachments",
    entity_type="review",
    collection="reviews",
    array_path="$.attachments",
    field_label="attachments",
    value_field="url",
    upload_folder="reviews",
    naming="attachment",
    name_kind="review",
)

ALL_SOURCES: Tuple[ReferenceSource, ...] = (
    PRODUCT_GALLERY,
    SLIDESHOW,
    ORDER_ITEMS,
    ORDER_DESIGN_FILES,
    REVIEW_ATTACHMENTS,
)
RECONCILE_SOURCES: Tuple[ReferenceSource, ...] = tuple(s for s in ALL_SOURCES if s.reconcile)


def source_by_name(name: str) -> Optional[ReferenceSource]:
    for source in ALL_SOURCES:
        if source.name == name:
            return source
    return None
