"""
SKU Registry

Lookup-or-create for catalog items shared by several subsystems. Two adapters
describing the same logical item slightly differently (case, spacing,
punctuation) resolve to the same row.
"""

from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError, OperationalError

from asset_ledger import db
from asset_ledger.buisness.core.errors import ConflictError, NotFoundError, StorageUnavailable, ValidationError
from asset_ledger.data.catalog.catalog_sku import CatalogSku
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.catalog")

_NON_ALNUM_RUN = re.compile(r'[\W_]+')

UNCATEGORIZED = 'uncategorized'

# Catalog metadata accepted by resolve() when a new SKU is created
SKU_METADATA_FIELDS = (
    'description', 'unit_of_measure', 'default_cost', 'default_price', 'supplier', 'barcode',
)


def normalize(value) -> str:
    """Lower-case, collapse every non-alphanumeric run into one hyphen, trim hyphens"""
    if value is None:
        return ''
    return _NON_ALNUM_RUN.sub('-', str(value).strip().lower()).strip('-')


def build_sku_key(domain: str, part_number: str | None, category: str | None, name: str | None) -> str:
    """
    Derive the catalog identity key.

    ``domain:part-number`` when a part number is present, otherwise
    ``domain:category:name``.

    Raises:
        ValidationError: If the domain is blank, or both part number and name are blank
    """
    domain_key = normalize(domain)
    if not domain_key:
        raise ValidationError("SKU domain is required")

    part_key = normalize(part_number)
    if part_key:
        return f"{domain_key}:{part_key}"

    name_key = normalize(name)
    if not name_key:
        raise ValidationError("SKU requires a part number or a name")
    category_key = normalize(category) or UNCATEGORIZED
    return f"{domain_key}:{category_key}:{name_key}"


class SkuRegistry:
    """Resolves catalog identities; the only writer of CatalogSku rows"""

    def get(self, item_id: int) -> CatalogSku:
        """
        Raises:
            NotFoundError: If the SKU does not exist
        """
        sku = db.session.get(CatalogSku, item_id) if item_id is not None else None
        if sku is None:
            raise NotFoundError("CatalogSku", item_id)
        return sku

    def get_by_key(self, sku_key: str) -> CatalogSku | None:
        return CatalogSku.query.filter_by(sku_key=sku_key).first()

    def resolve(
        self,
        domain: str,
        part_number: str | None,
        category: str | None,
        name: str,
        *,
        kind: str = 'Item',
        **metadata,
    ) -> CatalogSku:
        """
        Look up the SKU for a logical item, creating it on first sight

        Args:
            domain: Subsystem minting the item, e.g. "garage"
            part_number: Optional manufacturer/part number; preferred identity when present
            category: Category used by the fallback identity
            name: Display name used by the fallback identity
            kind: Kind of catalog entry, e.g. "SerializedAsset"
            **metadata: Optional catalog fields (description, unit_of_measure,
                default_cost, default_price, supplier, barcode) applied on creation only

        Returns:
            CatalogSku for the normalized key

        Raises:
            ValidationError: If the identity inputs are blank
            ConflictError: If a concurrent create won and the row still cannot be read
            StorageUnavailable: If the database cannot be reached
        """
        sku_key = build_sku_key(domain, part_number, category, name)

        try:
            existing = self.get_by_key(sku_key)
        except OperationalError as e:
            db.session.rollback()
            raise StorageUnavailable(f"Storage unavailable while resolving {sku_key}: {e}") from e
        if existing is not None:
            return existing

        unknown = set(metadata) - set(SKU_METADATA_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown SKU fields: {', '.join(sorted(unknown))}")

        display_name = (name or '').strip() or (part_number or '').strip()
        sku = CatalogSku(
            sku_key=sku_key,
            domain=str(domain).strip(),
            kind=kind,
            name=display_name,
            category=(category or '').strip() or None,
            part_number=(part_number or '').strip() or None,
            **metadata,
        )

        try:
            db.session.add(sku)
            db.session.commit()
        except IntegrityError:
            # Another writer created the same key between our read and write
            db.session.rollback()
            winner = self.get_by_key(sku_key)
            if winner is None:
                logger.error(f"SKU {sku_key} conflicted on create but could not be re-read")
                raise ConflictError(f"SKU {sku_key} could not be created or re-read")
            logger.info(f"SKU {sku_key} created concurrently; using existing row {winner.id}",
                        extra={'sku_key': sku_key})
            return winner
        except OperationalError as e:
            db.session.rollback()
            raise StorageUnavailable(f"Storage unavailable while creating {sku_key}: {e}") from e

        logger.info(f"Created SKU {sku.id} {sku_key}", extra={'sku_key': sku_key})
        return sku
