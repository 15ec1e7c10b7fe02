from sqlalchemy.orm import Session
from sqlalchemy import or_, and_
from typing import List, Optional, Tuple
from fastapi import HTTPException, status, Depends
from apps.stock.models import StockItem, StockMovement, MovementType
from apps.stock.schemas import (
    StockItemCreate,
    StockItemUpdate,
    StockAdjustment,
    LowStockAlert
)
from core.database import get_db, commit_or_fail
import logging

logger = logging.getLogger(__name__)

class StockService:
    def __init__(self, db: Session):
        self.db = db

    def get_stock_item(self, item_id: int) -> Optional[StockItem]:
        """Get stock item by ID"""
        return self.db.query(StockItem).filter(StockItem.id == item_id).first()

    def get_stock_item_or_404(self, item_id: int) -> StockItem:
        db_item = self.get_stock_item(item_id)
        if not db_item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Stock item not found"
            )
        return db_item

    def get_stock_item_by_sku(self, sku: str) -> Optional[StockItem]:
        """Get stock item by SKU"""
        return self.db.query(StockItem).filter(StockItem.sku == sku.upper()).first()

    def get_stock_items(
        self,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        category: Optional[str] = None,
        accessories_only: bool = False,
        low_stock_only: bool = False,
        active_only: bool = True
    ) -> Tuple[List[StockItem], int]:
        """Get stock items with filtering and pagination"""
        query = self.db.query(StockItem)

        if active_only:
            query = query.filter(StockItem.is_active.is_(True))

        if search:
            query = query.filter(
                or_(
                    StockItem.name.ilike(f"%{search}%"),
                    StockItem.sku.ilike(f"%{search}%"),
                    StockItem.supplier.ilike(f"%{search}%")
                )
            )

        if category:
            query = query.filter(StockItem.category == category)

        if accessories_only:
            query = query.filter(StockItem.is_accessory.is_(True))

        if low_stock_only:
            query = query.filter(StockItem.quantity <= StockItem.min_quantity)

        total = query.count()
        items = query.order_by(StockItem.name).offset(skip).limit(limit).all()

        return items, total

    def create_stock_item(self, item: StockItemCreate) -> StockItem:
        """Create a new stock item"""
        if item.sku and self.get_stock_item_by_sku(item.sku):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Stock item with SKU '{item.sku}' already exists"
            )

        db_item = StockItem(**item.model_dump())
        self.db.add(db_item)
        commit_or_fail(self.db, "create stock item")
        self.db.refresh(db_item)

        logger.info(f"Created stock item: {db_item.name} (ID: {db_item.id})")
        return db_item

    def update_stock_item(self, item_id: int, item_update: StockItemUpdate) -> StockItem:
        """Update an existing stock item. Quantity only changes through movements."""
        db_item = self.get_stock_item_or_404(item_id)

        update_data = item_update.model_dump(exclude_unset=True)

        if update_data.get('sku'):
            existing = self.get_stock_item_by_sku(update_data['sku'])
            if existing and existing.id != item_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Stock item with SKU '{update_data['sku']}' already exists"
                )

        for field, value in update_data.items():
            setattr(db_item, field, value)

        commit_or_fail(self.db, "update stock item")
        self.db.refresh(db_item)

        logger.info(f"Updated stock item: {db_item.name} (ID: {db_item.id})")
        return db_item

    def delete_stock_item(self, item_id: int) -> bool:
        """Soft delete; repair lines keep pointing at the item"""
        db_item = self.get_stock_item_or_404(item_id)
        db_item.is_active = False
        commit_or_fail(self.db, "delete stock item")

        logger.info(f"Deactivated stock item: {db_item.name} (ID: {db_item.id})")
        return True

    def record_movement(
        self,
        db_item: StockItem,
        movement_type: MovementType,
        quantity: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None
    ) -> StockMovement:
        """Apply a movement to the item's quantity and log it. The caller commits."""
        if movement_type == MovementType.IN:
            change = abs(quantity)
        elif movement_type == MovementType.OUT:
            change = -abs(quantity)
        else:
            change = quantity

        new_quantity = db_item.quantity + change
        if new_quantity < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient stock for {db_item.name}. Current: {db_item.quantity}, "
                       f"Requested reduction: {abs(change)}"
            )

        db_item.quantity = new_quantity
        movement = StockMovement(
            stock_item_id=db_item.id,
            type=movement_type,
            # Adjustments keep their sign, in and out are logged as counts
            quantity=change if movement_type == MovementType.ADJUSTMENT else abs(change),
            reference=reference,
            notes=notes
        )
        self.db.add(movement)
        return movement

    def adjust_stock(self, item_id: int, adjustment: StockAdjustment) -> StockItem:
        """Manual stock count correction"""
        db_item = self.get_stock_item_or_404(item_id)

        if adjustment.quantity_change == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quantity change cannot be zero"
            )

        self.record_movement(
            db_item,
            MovementType.ADJUSTMENT,
            adjustment.quantity_change,
            reference="Manual adjustment",
            notes=adjustment.reason
        )
        commit_or_fail(self.db, "adjust stock")
        self.db.refresh(db_item)

        logger.info(
            f"Updated stock for {db_item.name}: "
            f"{adjustment.quantity_change} (Reason: {adjustment.reason})"
        )
        return db_item

    def get_movements(self, item_id: int, limit: int = 100) -> List[StockMovement]:
        self.get_stock_item_or_404(item_id)
        return self.db.query(StockMovement).filter(
            StockMovement.stock_item_id == item_id
        ).order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()

    def get_low_stock_items(self) -> List[LowStockAlert]:
        """Get items at or below their minimum level"""
        low_stock_items = self.db.query(StockItem).filter(
            and_(
                StockItem.quantity <= StockItem.min_quantity,
                StockItem.is_active.is_(True)
            )
        ).order_by(StockItem.quantity).all()

        return [
            LowStockAlert(
                stock_item=item,
                current_stock=item.quantity,
                minimum_level=item.min_quantity,
                needs_reorder=item.quantity == 0
            )
            for item in low_stock_items
        ]

    def get_categories(self) -> List[str]:
        """Get all unique categories"""
        categories = self.db.query(StockItem.category).filter(
            StockItem.category.isnot(None),
            StockItem.is_active.is_(True)
        ).distinct().all()

        return sorted(cat[0] for cat in categories if cat[0])

# Dependency injection
def get_stock_service(db: Session = Depends(get_db)) -> StockService:
    return StockService(db)
