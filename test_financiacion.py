"""
Pruebas de la calculadora de financiación

Casos de referencia:
- P = 100'000, entrada 20'000, 48 meses, 3.9% -> cuota según fórmula de anualidad (~1'803)
- P = 48'000, sin entrada, 48 meses, 0% -> cuota 1'000 exacta, intereses 0
"""
import math

import pytest

from vip_inventory.utils.financing_calculator import (
    FinancingCalculator,
    FinancingError,
    calculate_financing,
    financing_calculator,
)


def _annuity(loan, annual_rate, months):
    r = annual_rate / 100 / 12
    return loan * r * (1 + r) ** months / ((1 + r) ** months - 1)


def test_caso_referencia_con_interes():
    """100'000 con 20'000 de entrada a 48 meses y 3.9%"""
    quote = calculate_financing(price=100000, down_payment=20000, term_months=48, annual_rate_percent=3.9)

    print(f"\nImporte financiado: {quote.loan_amount}")
    print(f"Cuota mensual: {quote.monthly_payment:.2f}")
    print(f"Intereses totales: {quote.total_interest:.2f}")
    print(f"Coste total: {quote.total_cost:.2f}")

    assert quote.loan_amount == 80000
    assert quote.monthly_payment == pytest.approx(_annuity(80000, 3.9, 48), rel=1e-9)
    assert abs(quote.monthly_payment - 1805) < 5, f"Error: esperado ~1805, obtenido {quote.monthly_payment}"
    assert quote.total_interest == pytest.approx(quote.monthly_payment * 48 - 80000)
    assert quote.total_cost == pytest.approx(100000 + quote.total_interest)


def test_caso_referencia_sin_interes():
    """Con 0% la cuota es lineal y exacta"""
    quote = calculate_financing(price=48000, down_payment=0, term_months=48, annual_rate_percent=0)

    assert quote.monthly_payment == 1000
    assert quote.total_interest == 0
    assert quote.total_cost == 48000
    assert quote.monthly_rate == 0


def test_entrada_igual_al_precio():
    quote = calculate_financing(price=50000, down_payment=50000, term_months=24, annual_rate_percent=5)
    assert quote.loan_amount == 0
    assert quote.monthly_payment == 0
    assert quote.total_interest == 0
    assert quote.total_cost == 50000


@pytest.mark.parametrize("rate", [1e-12, 0.01, 1.0, 12.0, 99.0])
@pytest.mark.parametrize("months", [1, 12, 84, 1200, 100000])
def test_resultados_finitos_y_no_negativos(rate, months):
    quote = calculate_financing(price=250000, down_payment=50000, term_months=months, annual_rate_percent=rate)
    for value in (quote.monthly_payment, quote.total_interest, quote.total_cost):
        assert math.isfinite(value), f"Valor no finito con rate={rate}, months={months}"
        assert value >= 0
    # Nunca se paga menos que el capital
    assert quote.monthly_payment * months >= quote.loan_amount * (1 - 1e-9)


def test_interes_minimo_tiende_a_cuota_lineal():
    quote = calculate_financing(price=48000, down_payment=0, term_months=48, annual_rate_percent=1e-12)
    assert quote.monthly_payment == pytest.approx(1000, rel=1e-9)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(price=-1, down_payment=0, term_months=12, annual_rate_percent=3),
        dict(price=1000, down_payment=-1, term_months=12, annual_rate_percent=3),
        dict(price=1000, down_payment=1001, term_months=12, annual_rate_percent=3),
        dict(price=1000, down_payment=0, term_months=0, annual_rate_percent=3),
        dict(price=1000, down_payment=0, term_months=-12, annual_rate_percent=3),
        dict(price=1000, down_payment=0, term_months=12.5, annual_rate_percent=3),
        dict(price=1000, down_payment=0, term_months=12, annual_rate_percent=-0.1),
        dict(price=float("nan"), down_payment=0, term_months=12, annual_rate_percent=3),
        dict(price=1000, down_payment=0, term_months=12, annual_rate_percent=float("inf")),
        dict(price="1000", down_payment=0, term_months=12, annual_rate_percent=3),
    ],
)
def test_precondiciones_no_validas(kwargs):
    with pytest.raises(FinancingError):
        calculate_financing(**kwargs)


def test_financing_error_es_value_error():
    with pytest.raises(ValueError):
        calculate_financing(price=1000, down_payment=0, term_months=0, annual_rate_percent=3)


def test_calculadora_valores_por_defecto():
    """Entrada del 20% redondeada, 48 meses y 3.9%"""
    quote = financing_calculator.calculate(125000)

    assert quote.down_payment == 25000
    assert quote.term_months == 48
    assert quote.annual_rate_percent == 3.9
    assert quote.monthly_payment == pytest.approx(_annuity(100000, 3.9, 48))


def test_quick_quote_igual_que_calculo_por_defecto():
    assert financing_calculator.quick_quote(89900) == financing_calculator.calculate(89900)


def test_calculadora_personalizada():
    calc = FinancingCalculator(down_payment_ratio=0.5, term_months=24, interest_rate=0)
    quote = calc.calculate(48000)
    assert quote.down_payment == 24000
    assert quote.monthly_payment == 1000

    # Los parámetros explícitos mandan sobre los de la calculadora
    quote = calc.calculate(48000, down_payment=0, term_months=48)
    assert quote.monthly_payment == 1000

    with pytest.raises(FinancingError):
        FinancingCalculator(down_payment_ratio=1.5)


def test_plazos_del_simulador():
    assert financing_calculator.term_options() == [12, 24, 36, 48, 60, 72, 84]


def test_to_dict_redondeado():
    breakdown = calculate_financing(100000, 20000, 48, 3.9).to_dict()
    assert breakdown["importe_prestamo"] == 80000
    assert breakdown["plazo_meses"] == 48
    assert breakdown["cuota_mensual"] == pytest.approx(_annuity(80000, 3.9, 48), abs=0.01)


@pytest.mark.parametrize(
    "months, rate",
    [(10**400, 3.9), (10**400, 0), (10**308, 3.9)],
)
def test_plazo_enorme_es_error_de_financiacion(months, rate):
    """Plazos no representables como float o con coste total infinito"""
    with pytest.raises(FinancingError):
        calculate_financing(price=100000, down_payment=20000, term_months=months, annual_rate_percent=rate)
