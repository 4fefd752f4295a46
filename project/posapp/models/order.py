# posapp/models/order.py

from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, CheckConstraint
from posapp.utils.clock import utcnow_naive
from posapp.utils.database import Base

ORDER_STATUSES = ("completed", "refunded")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_amount_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)  # автоинкремент, внутренний ID

    order_id       = Column(String, unique=True, index=True, nullable=False)  # ключ идемпотентности
    items          = Column(JSON, nullable=False, default=list)                # позиции чека
    total_amount   = Column(Float, nullable=False)                             # сумма, посчитанная клиентом
    status         = Column(String, nullable=False, default="completed")      # completed / refunded
    timestamp      = Column(DateTime, nullable=False, index=True, default=utcnow_naive)  # момент продажи (UTC)
    customer_name  = Column(String, nullable=False, default="Guest")          # Покупатель
    table          = Column(String, nullable=False, default="0")              # Стол
    payment_method = Column(String, nullable=False, default="Cash")           # Способ оплаты

    created_at = Column(DateTime, nullable=False, default=utcnow_naive)
    updated_at = Column(DateTime, nullable=False, default=utcnow_naive, onupdate=utcnow_naive)
