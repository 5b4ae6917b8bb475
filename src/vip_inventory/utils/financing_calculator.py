"""
Calculadora de financiación de vehículos (préstamo amortizable a cuota fija)

Fórmula de anualidad:
    cuota = préstamo × r × (1 + r)^n / ((1 + r)^n − 1)
con r = interés anual / 100 / 12 y n = plazo en meses.
Con interés 0 la cuota es lineal: préstamo / n.
"""
import math
from numbers import Real
from typing import Any, Dict

from pydantic import BaseModel, Field


class FinancingError(ValueError):
    """Entrada no válida para la calculadora de financiación"""


class FinancingQuote(BaseModel):
    """Resultado de una simulación de financiación"""

    price: float = Field(..., ge=0)
    down_payment: float = Field(..., ge=0)
    term_months: int = Field(..., gt=0)
    annual_rate_percent: float = Field(..., ge=0)
    loan_amount: float = Field(..., ge=0)
    monthly_rate: float = Field(..., ge=0)
    monthly_payment: float = Field(..., ge=0)
    total_interest: float = Field(..., ge=0)
    total_cost: float = Field(..., ge=0)

    def to_dict(self) -> Dict[str, Any]:
        """Desglose redondeado para mostrar al cliente"""
        return {
            "precio": round(self.price, 2),
            "entrada": round(self.down_payment, 2),
            "plazo_meses": self.term_months,
            "interes_anual": round(self.annual_rate_percent, 2),
            "importe_prestamo": round(self.loan_amount, 2),
            "cuota_mensual": round(self.monthly_payment, 2),
            "intereses_totales": round(self.total_interest, 2),
            "coste_total": round(self.total_cost, 2),
        }


def _require_finite(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise FinancingError(f"{name} debe ser numérico, recibido: {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise FinancingError(f"{name} debe ser un número finito, recibido: {value}")
    return value


def monthly_payment(loan_amount: float, monthly_rate: float, term_months: int) -> float:
    """
    Cuota mensual de un préstamo amortizable.

    Equivale a la fórmula de anualidad pero escrita como
    préstamo × r / (1 − (1 + r)^−n) con log1p/expm1, así no desborda con
    plazos largos ni pierde precisión con tipos muy pequeños.
    """
    if monthly_rate == 0:
        return loan_amount / term_months
    discount = -math.expm1(-term_months * math.log1p(monthly_rate))
    if discount == 0:
        return loan_amount / term_months
    return loan_amount * monthly_rate / discount


def calculate_financing(
    price: float,
    down_payment: float,
    term_months: int,
    annual_rate_percent: float,
) -> FinancingQuote:
    """
    Calcula cuota mensual, intereses totales y coste total

    Args:
        price: Precio del vehículo (>= 0)
        down_payment: Entrada, entre 0 y el precio
        term_months: Plazo en meses (entero > 0)
        annual_rate_percent: Interés nominal anual en % (>= 0)

    Returns:
        FinancingQuote con el desglose

    Raises:
        FinancingError: si alguna entrada viola las precondiciones
    """
    price = _require_finite("price", price)
    down_payment = _require_finite("down_payment", down_payment)
    annual_rate_percent = _require_finite("annual_rate_percent", annual_rate_percent)

    if isinstance(term_months, bool) or not isinstance(term_months, int):
        raise FinancingError(f"term_months debe ser un entero, recibido: {term_months!r}")
    if price < 0:
        raise FinancingError(f"El precio no puede ser negativo: {price}")
    if down_payment < 0 or down_payment > price:
        raise FinancingError(f"La entrada debe estar entre 0 y el precio ({price}): {down_payment}")
    if term_months <= 0:
        raise FinancingError(f"El plazo debe ser mayor que 0 meses: {term_months}")
    if annual_rate_percent < 0:
        raise FinancingError(f"El interés no puede ser negativo: {annual_rate_percent}")

    loan_amount = price - down_payment
    monthly_rate = annual_rate_percent / 100 / 12
    try:
        payment = monthly_payment(loan_amount, monthly_rate, term_months)
        total_paid = payment * term_months
    except OverflowError as e:
        raise FinancingError(f"Plazo fuera de rango: {term_months} meses") from e

    if not math.isfinite(payment):
        raise FinancingError(f"Interés fuera de rango, la cuota no es representable: {annual_rate_percent}%")
    if not math.isfinite(total_paid):
        raise FinancingError(f"Plazo fuera de rango: {term_months} meses")

    # Ruido de coma flotante: los intereses nunca son negativos
    total_interest = max(total_paid - loan_amount, 0.0)

    return FinancingQuote(
        price=price,
        down_payment=down_payment,
        term_months=term_months,
        annual_rate_percent=annual_rate_percent,
        loan_amount=loan_amount,
        monthly_rate=monthly_rate,
        monthly_payment=payment,
        total_interest=total_interest,
        total_cost=price + total_interest,
    )


class FinancingCalculator:
    """Calculadora con los valores por defecto del simulador de la web"""

    DOWN_PAYMENT_RATIO = 0.2   # 20% de entrada
    TERM_MONTHS = 48
    INTEREST_RATE = 3.9        # % anual

    # Rangos del simulador
    MIN_TERM_MONTHS = 12
    MAX_TERM_MONTHS = 84
    TERM_STEP = 12

    def __init__(
        self,
        down_payment_ratio: float = DOWN_PAYMENT_RATIO,
        term_months: int = TERM_MONTHS,
        interest_rate: float = INTEREST_RATE,
    ):
        """
        Inicializa la calculadora con condiciones personalizables

        Args:
            down_payment_ratio: Fracción del precio pagada como entrada (0 a 1)
            term_months: Plazo por defecto en meses
            interest_rate: Interés nominal anual por defecto (%)
        """
        if not 0 <= down_payment_ratio <= 1:
            raise FinancingError(f"La fracción de entrada debe estar entre 0 y 1: {down_payment_ratio}")
        self.down_payment_ratio = down_payment_ratio
        self.term_months = term_months
        self.interest_rate = interest_rate

    def default_down_payment(self, price: float) -> float:
        """Entrada sugerida, redondeada a unidades como en el simulador"""
        return float(round(price * self.down_payment_ratio))

    def calculate(
        self,
        price: float,
        down_payment: float = None,
        term_months: int = None,
        annual_rate_percent: float = None,
    ) -> FinancingQuote:
        """Calcula una cuota; los parámetros omitidos toman los valores por defecto"""
        if down_payment is None:
            down_payment = min(self.default_down_payment(_require_finite("price", price)), price)
        return calculate_financing(
            price,
            down_payment,
            self.term_months if term_months is None else term_months,
            self.interest_rate if annual_rate_percent is None else annual_rate_percent,
        )

    def quick_quote(self, price: float) -> FinancingQuote:
        """Cuota "desde" que se muestra en la ficha del coche (versión compacta)"""
        return self.calculate(price)

    def term_options(self):
        """Plazos ofrecidos en el slider: 12, 24, ..., 84 meses"""
        return list(range(self.MIN_TERM_MONTHS, self.MAX_TERM_MONTHS + 1, self.TERM_STEP))


# Instancia global con valores por defecto
financing_calculator = FinancingCalculator()
