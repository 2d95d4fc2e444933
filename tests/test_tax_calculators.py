import pytest

from caportal.exceptions import ValidationError
from caportal.services.tax_service import TaxService, slab_tax, NEW_REGIME_SLABS


class TestIncomeTax:

    def test_new_regime_rebate_covers_income_up_to_12_lakh(self):
        # 12.75L salary - 75k standard deduction = 12L taxable
        result = TaxService.income_tax(1275000, 'new', True)
        assert result['taxableIncome'] == 1200000
        assert result['tax'] == pytest.approx(60000)
        assert result['rebate'] == pytest.approx(60000)
        assert result['totalTax'] == 0

    def test_new_regime_rebate_lost_one_rupee_above_limit(self):
        result = TaxService.income_tax(1275001, 'new', True)
        assert result['rebate'] == 0
        assert result['cess'] == pytest.approx(60000.15 * 0.04)
        assert result['totalTax'] == pytest.approx(60000.15 * 1.04)

    def test_non_salaried_gets_no_standard_deduction(self):
        result = TaxService.income_tax(1000000, 'new', False)
        assert result['standardDeduction'] == 0
        assert result['taxableIncome'] == 1000000

    def test_new_regime_ignores_deductions(self):
        result = TaxService.income_tax(2000000, 'new', True, deductions_80c=150000, deductions_80d=25000)
        assert result['deductions'] == 0

    def test_old_regime_caps_80c(self):
        result = TaxService.income_tax(1000000, 'old', True, deductions_80c=200000)
        assert result['deductions'] == 150000
        assert result['taxableIncome'] == 800000
        # 12,500 (2.5L-5L @5%) + 60,000 (5L-8L @20%)
        assert result['tax'] == pytest.approx(72500)
        assert result['totalTax'] == pytest.approx(75400)

    def test_old_regime_rebate_at_5_lakh(self):
        result = TaxService.income_tax(550000, 'old', True)
        assert result['taxableIncome'] == 500000
        assert result['totalTax'] == 0

    def test_section_labels_follow_financial_year(self):
        assert TaxService.income_tax(1, financial_year='2025-26')['sections']['rebate'] == 'Section 87A'
        assert '157' in TaxService.income_tax(1, financial_year='2026-27')['sections']['rebate']

    def test_unknown_regime_and_year_rejected(self):
        with pytest.raises(ValidationError):
            TaxService.income_tax(100000, 'flat')
        with pytest.raises(ValidationError):
            TaxService.income_tax(100000, 'new', financial_year='2019-20')

    def test_slab_tax_top_bracket(self):
        # 20,000 + 40,000 + 60,000 + 80,000 + 1,00,000 + 30% of 6L
        assert slab_tax(3000000, NEW_REGIME_SLABS) == pytest.approx(480000)


class TestAdvanceTax:

    def test_instalments_are_cumulative_percentages(self):
        result = TaxService.advance_tax(2000000, 'new')
        assert result['taxableIncome'] == 1925000
        assert result['totalTax'] == pytest.approx(192400)
        assert result['liable'] is True

        amounts = [i['amount'] for i in result['instalments']]
        assert amounts[0] == pytest.approx(28860)
        assert amounts[1] == pytest.approx(57720)
        assert sum(amounts) == pytest.approx(192400)
        assert result['instalments'][-1]['cumulative'] == pytest.approx(192400)

    def test_tds_reduces_payable(self):
        result = TaxService.advance_tax(2000000, 'new', tds_deducted=100000)
        assert result['advanceTaxPayable'] == pytest.approx(92400)

    def test_below_threshold_not_liable(self):
        result = TaxService.advance_tax(1000000, 'new')
        assert result['liable'] is False
        assert all(i['amount'] == 0 for i in result['instalments'])


class TestTds:

    def test_professional_fees(self):
        result = TaxService.tds('professional', 100000)
        assert result['section'] == '194J'
        assert result['tdsAmount'] == pytest.approx(10000)
        assert result['netAmount'] == pytest.approx(90000)

    def test_no_pan_uses_higher_rate(self):
        assert TaxService.tds('professional', 100000, pan_available=False)['tdsRate'] == 20
        assert TaxService.tds('lottery', 100000, pan_available=False)['tdsRate'] == 30

    def test_property_below_50_lakh_exempt(self):
        result = TaxService.tds('property', 4000000)
        assert result['tdsAmount'] == 0
        assert result['isPropertyBelow50L'] is True

    def test_property_seller_without_pan(self):
        result = TaxService.tds('property', 6000000, seller_pan_available=False)
        assert result['tdsRate'] == 20
        assert result['tdsAmount'] == pytest.approx(1200000)

    def test_salary_monthly_deduction(self):
        result = TaxService.tds('salary', annual_salary=1500000)
        assert result['taxableIncome'] == 1425000
        assert result['annualTax'] == pytest.approx(97500)
        assert result['tdsAmount'] == pytest.approx(8125)

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            TaxService.tds('gifts', 1000)


class TestCapitalGains:

    def test_equity_long_term_after_12_months(self):
        result = TaxService.capital_gains('equity', 100000, 200000, '2024-01-15', '2025-01-10')
        assert result['holdingMonths'] == 12
        assert result['holdingPeriod'] == 'long-term'
        assert result['taxAmount'] == pytest.approx(12500)

    def test_equity_short_term(self):
        result = TaxService.capital_gains('equity', 100000, 200000, '2024-02-01', '2025-01-31')
        assert result['holdingPeriod'] == 'short-term'
        assert result['taxRate'] == 20
        assert result['taxAmount'] == pytest.approx(20000)

    def test_loss_is_not_taxed(self):
        result = TaxService.capital_gains('gold', 200000, 150000, '2020-01-01', '2021-01-01')
        assert result['capitalGain'] == pytest.approx(-50000)
        assert result['taxAmount'] == 0

    def test_property_indexation(self):
        result = TaxService.capital_gains('property', 100000, 200000, '2020-01-01', '2022-01-01',
                                          indexation=True)
        assert result['indexedCost'] == pytest.approx(110250)
        assert result['capitalGain'] == pytest.approx(89750)

    def test_sale_before_purchase(self):
        with pytest.raises(ValidationError):
            TaxService.capital_gains('equity', 1, 2, '2025-01-01', '2024-01-01')

    def test_bad_date(self):
        with pytest.raises(ValidationError):
            TaxService.capital_gains('equity', 1, 2, '01/01/2024', '2025-01-01')


class TestEmi:

    def test_standard_emi(self):
        result = TaxService.emi(1000000, 12, 12)
        assert result['emi'] == pytest.approx(88848.79, rel=1e-6)
        assert result['totalInterest'] == pytest.approx(result['totalAmount'] - 1000000)

    def test_years_equal_months(self):
        assert TaxService.emi(500000, 9, 2, 'years')['emi'] == pytest.approx(
            TaxService.emi(500000, 9, 24, 'months')['emi'])

    def test_zero_rate(self):
        assert TaxService.emi(100000, 0, 10)['emi'] == pytest.approx(10000)

    def test_zero_tenure(self):
        result = TaxService.emi(100000, 10, 0)
        assert result['emi'] == 0
        assert result['totalAmount'] == 0

    def test_overlong_tenure_rejected(self):
        with pytest.raises(ValidationError, match='Tenure too long'):
            TaxService.emi(100000, 12, 100000)

    def test_overlong_tenure_is_a_bad_request(self, client):
        resp = client.post('/api/calculators/emi', json={
            'loanAmount': 100000, 'interestRate': 12, 'tenure': 100000
        })
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Tenure too long'
