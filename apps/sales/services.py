from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
from fastapi import HTTPException, status, Depends
from datetime import datetime
import logging

from apps.sales.models import (
    AccessorySale, AccessorySaleItem, MotorcycleInventory, MotorcycleSale,
    InventoryStatus, BikeCondition, PaymentMethod
)
from apps.sales.schemas import (
    AccessorySaleCreate, InventoryCreate, InventoryUpdate, MotorcycleSaleCreate
)
from apps.customers.models import Customer
from apps.stock.models import MovementType
from apps.stock.services import StockService
from apps.invoices.pricing import round_money
from core.database import get_db, commit_or_fail

logger = logging.getLogger(__name__)


class SalesService:
    def __init__(self, db: Session):
        self.db = db
        self.stock = StockService(db)

    def _check_customer(self, customer_id: Optional[int]) -> None:
        if customer_id is None:
            return
        if not self.db.query(Customer).filter(Customer.id == customer_id).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer not found"
            )

    # ============ ACCESSORY SALES ============

    def create_accessory_sale(self, sale_data: AccessorySaleCreate) -> AccessorySale:
        """Sell accessories over the counter, taking each line out of stock"""
        self._check_customer(sale_data.customer_id)

        sale = AccessorySale(customer_id=sale_data.customer_id, notes=sale_data.notes)
        self.db.add(sale)

        try:
            # The sale id goes into each stock movement
            self.db.flush()
            total = 0.0
            for line in sale_data.items:
                item = self.stock.get_stock_item(line.stock_item_id)
                if not item or not item.is_active:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"Stock item {line.stock_item_id} not found"
                    )
                if not item.is_accessory:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"{item.name} is not sold as an accessory"
                    )
                unit_price = line.unit_price if line.unit_price is not None else item.sell_price
                self.stock.record_movement(
                    item,
                    MovementType.OUT,
                    line.quantity,
                    reference="Accessory sale",
                    notes=f"Sale #{sale.id}"
                )
                sale.items.append(AccessorySaleItem(
                    stock_item_id=item.id,
                    quantity=line.quantity,
                    unit_price=unit_price
                ))
                total += line.quantity * unit_price
        except HTTPException:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Store write failed while recording accessory sale")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Could not record sale, nothing was saved"
            )

        sale.total = round_money(total)
        commit_or_fail(self.db, "record sale")
        self.db.refresh(sale)

        logger.info(f"Accessory sale #{sale.id}: {len(sale.items)} line(s), total {sale.total}")
        return sale

    def get_accessory_sale_or_404(self, sale_id: int) -> AccessorySale:
        sale = self.db.query(AccessorySale).filter(AccessorySale.id == sale_id).first()
        if not sale:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Sale not found"
            )
        return sale

    def get_accessory_sales(self, limit: int = 50) -> List[AccessorySale]:
        return self.db.query(AccessorySale).order_by(
            AccessorySale.created_at.desc(), AccessorySale.id.desc()
        ).limit(limit).all()

    # ============ MOTORCYCLE INVENTORY ============

    def get_inventory_item_or_404(self, inventory_id: int) -> MotorcycleInventory:
        bike = self.db.query(MotorcycleInventory).filter(MotorcycleInventory.id == inventory_id).first()
        if not bike:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Motorcycle not found in inventory"
            )
        return bike

    def get_inventory(
        self,
        search: Optional[str] = None,
        status_filter: Optional[InventoryStatus] = None
    ) -> List[MotorcycleInventory]:
        query = self.db.query(MotorcycleInventory)

        if search:
            query = query.filter(
                or_(
                    MotorcycleInventory.make.ilike(f"%{search}%"),
                    MotorcycleInventory.model.ilike(f"%{search}%"),
                    MotorcycleInventory.registration.ilike(f"%{search}%"),
                    MotorcycleInventory.color.ilike(f"%{search}%")
                )
            )

        if status_filter:
            query = query.filter(MotorcycleInventory.status == InventoryStatus(status_filter.value))

        return query.order_by(MotorcycleInventory.created_at.desc(), MotorcycleInventory.id.desc()).all()

    def add_inventory_item(self, bike_data: InventoryCreate) -> MotorcycleInventory:
        data = bike_data.model_dump()
        data["condition"] = BikeCondition(bike_data.condition.value)
        bike = MotorcycleInventory(**data)
        self.db.add(bike)
        commit_or_fail(self.db, "add motorcycle to inventory")
        self.db.refresh(bike)

        logger.info(f"Added {bike.make} {bike.model} to sales inventory (ID: {bike.id})")
        return bike

    def update_inventory_item(self, inventory_id: int, bike_update: InventoryUpdate) -> MotorcycleInventory:
        bike = self.get_inventory_item_or_404(inventory_id)
        update_data = bike_update.model_dump(exclude_unset=True)
        for required in ("make", "model", "mileage", "condition", "cost_price", "sell_price", "status"):
            if required in update_data and update_data[required] is None:
                del update_data[required]

        if "status" in update_data:
            new_status = InventoryStatus(update_data["status"].value)
            if new_status == InventoryStatus.SOLD or bike.status == InventoryStatus.SOLD:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Record a sale to mark a motorcycle sold; sold motorcycles cannot be put back on sale"
                )
            update_data["status"] = new_status
        if "condition" in update_data:
            update_data["condition"] = BikeCondition(update_data["condition"].value)

        for field, value in update_data.items():
            setattr(bike, field, value)

        commit_or_fail(self.db, "update motorcycle")
        self.db.refresh(bike)
        return bike

    def delete_inventory_item(self, inventory_id: int) -> bool:
        bike = self.get_inventory_item_or_404(inventory_id)
        if bike.status == InventoryStatus.SOLD:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Sold motorcycles are kept for the sales history"
            )
        self.db.delete(bike)
        commit_or_fail(self.db, "delete motorcycle")

        logger.info(f"Removed motorcycle {inventory_id} from sales inventory")
        return True

    # ============ MOTORCYCLE SALES ============

    def sell_motorcycle(self, inventory_id: int, sale_data: MotorcycleSaleCreate) -> MotorcycleSale:
        """Record the sale and mark the bike sold.

        The status change is a single UPDATE that only matches an unsold bike,
        so two people selling the same bike cannot both succeed.
        """
        bike = self.get_inventory_item_or_404(inventory_id)
        if bike.status == InventoryStatus.SOLD:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"{bike.make} {bike.model} is already sold"
            )
        self._check_customer(sale_data.customer_id)

        sold_at = datetime.utcnow()
        sale = MotorcycleSale(
            inventory_id=bike.id,
            customer_id=sale_data.customer_id,
            sale_price=round_money(sale_data.sale_price if sale_data.sale_price is not None else bike.sell_price),
            cost_price=round_money(bike.cost_price or 0.0),
            sale_date=sold_at,
            payment_method=PaymentMethod(sale_data.payment_method.value),
            notes=sale_data.notes
        )

        try:
            updated = self.db.query(MotorcycleInventory).filter(
                MotorcycleInventory.id == bike.id,
                MotorcycleInventory.status != InventoryStatus.SOLD
            ).update(
                {MotorcycleInventory.status: InventoryStatus.SOLD, MotorcycleInventory.updated_at: sold_at},
                synchronize_session=False
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Store write failed while selling motorcycle {bike.id}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Could not record sale, nothing was saved"
            )

        if updated == 0:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"{bike.make} {bike.model} was sold while recording this sale"
            )

        self.db.add(sale)
        commit_or_fail(self.db, "record sale")
        self.db.refresh(sale)

        logger.info(
            f"Sold {bike.make} {bike.model} (ID: {bike.id}) for {sale.sale_price}, profit {sale.profit:.2f}"
        )
        return sale

    def get_motorcycle_sales(self) -> List[MotorcycleSale]:
        return self.db.query(MotorcycleSale).order_by(
            MotorcycleSale.sale_date.desc(), MotorcycleSale.id.desc()
        ).all()

# Dependency injection
def get_sales_service(db: Session = Depends(get_db)) -> SalesService:
    return SalesService(db)
