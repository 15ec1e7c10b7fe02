"""Tests for the repair job cost engine"""
import pytest

from apps.invoices.pricing import (
    PartLine, ServiceLine, CostComputationError,
    compute_total, authoritative_total, initial_labor, to_amount, round_money
)


class TestComputeTotal:
    """Invoice preview totals"""

    def setup_method(self):
        self.parts = [PartLine(quantity=2, unit_price=10.00)]
        self.services = [ServiceLine(price=25.00)]

    def test_with_vat(self):
        """
        Parts 2 x 10.00, service 25.00, labour 15.00, VAT 20%
        Expected: subtotal 60.00, VAT 12.00, total 72.00
        """
        result = compute_total(self.parts, self.services, labor_cost=15.00, vat_rate=20, include_vat=True)

        assert result.parts_total == pytest.approx(20.00)
        assert result.services_total == pytest.approx(25.00)
        assert result.labor == pytest.approx(15.00)
        assert result.subtotal == pytest.approx(60.00)
        assert result.vat == pytest.approx(12.00)
        assert result.display_total == pytest.approx(72.00)

    def test_without_vat(self):
        result = compute_total(self.parts, self.services, labor_cost=15.00, vat_rate=20, include_vat=False)

        assert result.vat == 0
        assert result.display_total == pytest.approx(60.00)

    def test_same_inputs_same_result(self):
        first = compute_total(self.parts, self.services, labor_cost=15.00, vat_rate=20)
        second = compute_total(self.parts, self.services, labor_cost=15.00, vat_rate=20)
        assert first == second

    @pytest.mark.parametrize("rate", [0, 5, 17.5, 20, 100])
    def test_vat_can_be_reapplied_to_the_net_total(self, rate):
        net = compute_total(self.parts, self.services, labor_cost=15.00, vat_rate=rate, include_vat=False)
        gross = compute_total(self.parts, self.services, labor_cost=15.00, vat_rate=rate, include_vat=True)

        assert net.subtotal * (1 + rate / 100) == pytest.approx(gross.display_total)

    def test_default_vat_rate_is_20_percent(self):
        result = compute_total([], [ServiceLine(price=100.00)])
        assert result.vat_rate == 20
        assert result.display_total == pytest.approx(120.00)

    def test_zero_quantity_part_adds_nothing(self):
        result = compute_total([PartLine(quantity=0, unit_price=99.99)], [], include_vat=False)
        assert result.parts_total == 0
        assert result.display_total == 0

    def test_missing_and_junk_figures_count_as_zero(self):
        class Row:
            quantity = 1
            unit_price = "not a number"

        result = compute_total([Row()], [ServiceLine(price=None)], labor_cost="abc", include_vat=False)
        assert result.subtotal == 0

    def test_negative_unit_price_is_rejected(self):
        with pytest.raises(CostComputationError):
            compute_total([PartLine(quantity=1, unit_price=-5.00)], [])

    def test_negative_service_price_is_rejected(self):
        with pytest.raises(CostComputationError):
            compute_total([], [ServiceLine(price=-1)])

    def test_negative_labour_is_rejected(self):
        with pytest.raises(CostComputationError):
            compute_total([], [], labor_cost=-10)

    def test_vat_rate_above_100_is_rejected(self):
        with pytest.raises(CostComputationError):
            compute_total([], [], labor_cost=10, vat_rate=120)

    def test_error_is_a_value_error(self):
        assert issubclass(CostComputationError, ValueError)


class TestAuthoritativeTotal:
    """The override chain used by summary views"""

    def test_final_cost_wins_over_lines(self):
        total = authoritative_total(
            [PartLine(quantity=3, unit_price=40.00)], [ServiceLine(price=80.00)],
            labor_cost=50, final_cost=150.00, estimated_cost=999
        )
        assert total == 150.00

    def test_final_cost_wins_with_no_lines(self):
        assert authoritative_total([], [], labor_cost=0, final_cost=150.00) == 150.00

    def test_calculated_subtotal_without_vat_when_no_final_cost(self):
        total = authoritative_total(
            [PartLine(quantity=2, unit_price=10.00)], [ServiceLine(price=25.00)],
            labor_cost=15.00, final_cost=None, estimated_cost=500
        )
        assert total == pytest.approx(60.00)

    def test_zero_final_cost_is_not_an_override(self):
        total = authoritative_total([], [ServiceLine(price=30.00)], final_cost=0, estimated_cost=80)
        assert total == pytest.approx(30.00)

    def test_falls_back_to_estimate(self):
        assert authoritative_total([], [], labor_cost=0, final_cost=None, estimated_cost=80.00) == 80.00

    def test_nothing_known_is_zero(self):
        assert authoritative_total([], [], None, None, None) == 0


class TestInitialLabor:
    """Labour figure an invoice opens with"""

    def test_uses_stored_labour(self):
        assert initial_labor([PartLine(1, 5.0)], [], labor_cost=45, final_cost=200) == 45

    def test_no_lines_takes_final_cost(self):
        assert initial_labor([], [], labor_cost=None, final_cost=150, estimated_cost=80) == 150

    def test_no_lines_takes_estimate_when_no_final_cost(self):
        assert initial_labor([], [], labor_cost=0, final_cost=None, estimated_cost=80) == 80

    def test_lines_present_means_no_inference(self):
        assert initial_labor([], [ServiceLine(price=25)], labor_cost=None, final_cost=150, estimated_cost=80) == 0

    def test_nothing_known_is_zero(self):
        assert initial_labor([], []) == 0


class TestMoneyHelpers:

    @pytest.mark.parametrize("raw, expected", [
        (None, 0.0), ("", 0.0), ("12.5", 12.5), (7, 7.0), (True, 0.0), (float("nan"), 0.0), ("inf", 0.0),
    ])
    def test_to_amount(self, raw, expected):
        assert to_amount(raw) == expected

    def test_round_money_rounds_half_up(self):
        assert round_money(2.675) == 2.68
        assert round_money(0.125) == 0.13
        assert round_money(72.0) == 72.0
