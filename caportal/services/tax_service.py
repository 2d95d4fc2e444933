"""Income tax calculators (income tax, advance tax, TDS, capital gains, EMI)"""
from caportal.exceptions import ValidationError
from caportal.utils.validators import to_amount, to_bool, to_date

FINANCIAL_YEARS = ('2025-26', '2026-27')
REGIMES = ('new', 'old')

# (upper bound of the slab, rate); None = no upper bound
NEW_REGIME_SLABS = (
    (400000, 0.0),
    (800000, 0.05),
    (1200000, 0.10),
    (1600000, 0.15),
    (2000000, 0.20),
    (2400000, 0.25),
    (None, 0.30),
)
OLD_REGIME_SLABS = (
    (250000, 0.0),
    (500000, 0.05),
    (1000000, 0.20),
    (None, 0.30),
)

# regime -> (slabs, standard deduction, rebate income limit, max rebate)
REGIME_RULES = {
    'new': (NEW_REGIME_SLABS, 75000, 1200000, 60000),
    'old': (OLD_REGIME_SLABS, 50000, 500000, 12500),
}
MAX_80C = 150000
CESS_RATE = 0.04

ADVANCE_TAX_THRESHOLD = 10000
ADVANCE_TAX_INSTALMENTS = (
    ('15th June', 15),
    ('15th September', 45),
    ('15th December', 75),
    ('15th March', 100),
)

TDS_CATEGORIES = {
    'salary':             {'name': 'Salary', 'section': '192', 'rate': None},
    'professional':       {'name': 'Professional/Technical Fees', 'section': '194J', 'rate': 10},
    'contractor_individual': {'name': 'Contractor - Individual/HUF', 'section': '194C', 'rate': 1},
    'contractor_others':  {'name': 'Contractor - Others', 'section': '194C', 'rate': 2},
    'commission':         {'name': 'Commission/Brokerage', 'section': '194H', 'rate': 5},
    'rent_machinery':     {'name': 'Rent - Plant & Machinery', 'section': '194I', 'rate': 2},
    'rent_building':      {'name': 'Rent - Land & Building', 'section': '194I', 'rate': 10},
    'interest':           {'name': 'Interest Other Than Securities', 'section': '194A', 'rate': 10},
    'dividend':           {'name': 'Dividend', 'section': '194', 'rate': 10},
    'lottery':            {'name': 'Winnings from Lottery', 'section': '194B', 'rate': 30},
    'property':           {'name': 'Purchase of Property (>₹50L)', 'section': '194-IA', 'rate': 1},
}
NO_PAN_RATE = 20
PROPERTY_TDS_THRESHOLD = 5000000

ASSET_TYPES = ('equity', 'property', 'gold', 'debt')
INDEXATION_INFLATION = 1.05


def slab_tax(taxable_income, slabs):
    """Progressive tax over a slab table"""
    tax = 0.0
    lower = 0
    for upper, rate in slabs:
        if upper is None or taxable_income <= upper:
            tax += (taxable_income - lower) * rate
            break
        tax += (upper - lower) * rate
        lower = upper
    return tax


def section_labels(financial_year):
    """Section references renumbered by the Income-tax Act 2025"""
    if financial_year == '2026-27':
        return {
            'rebate': 'Section 157 (earlier 87A)',
            'deduction80C': 'Section 123 (earlier 80C)',
            'deduction80D': 'Section 126 (earlier 80D)',
        }
    return {'rebate': 'Section 87A', 'deduction80C': 'Section 80C', 'deduction80D': 'Section 80D'}


class TaxService:

    @staticmethod
    def _regime(regime):
        regime = (regime or 'new').lower()
        if regime not in REGIMES:
            raise ValidationError(f'Unknown tax regime: {regime}')
        return regime

    @staticmethod
    def compute_tax(taxable_income, regime='new'):
        """
        Tax on an already-reduced taxable income.
        Returns (tax, rebate, cess, total_tax).
        """
        slabs, _, rebate_limit, max_rebate = REGIME_RULES[TaxService._regime(regime)]
        taxable_income = max(taxable_income, 0)
        tax = slab_tax(taxable_income, slabs)
        rebate = min(tax, max_rebate) if taxable_income <= rebate_limit else 0.0
        after_rebate = max(tax - rebate, 0)
        cess = after_rebate * CESS_RATE
        return tax, rebate, cess, after_rebate + cess

    @staticmethod
    def income_tax(income, regime='new', is_salaried=True, financial_year='2026-27',
                   deductions_80c=0, deductions_80d=0, other_deductions=0):
        """Annual income tax under the chosen regime"""
        regime = TaxService._regime(regime)
        if financial_year not in FINANCIAL_YEARS:
            raise ValidationError(f'Unsupported financial year: {financial_year}')

        income = to_amount(income)
        _, standard_deduction, _, _ = REGIME_RULES[regime]
        if not to_bool(is_salaried, True):
            standard_deduction = 0

        if regime == 'old':
            deductions = min(to_amount(deductions_80c), MAX_80C) + to_amount(deductions_80d) \
                + to_amount(other_deductions)
        else:
            # Chapter VI-A deductions are not available under the new regime
            deductions = 0

        taxable_income = max(income - deductions - standard_deduction, 0)
        tax, rebate, cess, total_tax = TaxService.compute_tax(taxable_income, regime)
        return {
            'financialYear': financial_year,
            'regime': regime,
            'grossIncome': income,
            'standardDeduction': standard_deduction,
            'deductions': deductions,
            'taxableIncome': taxable_income,
            'tax': tax,
            'rebate': rebate,
            'cess': cess,
            'totalTax': total_tax,
            'sections': section_labels(financial_year),
        }

    @staticmethod
    def advance_tax(income, regime='new', deductions=0, tds_deducted=0):
        """Advance tax liability split into the four statutory instalments"""
        regime = TaxService._regime(regime)
        income = to_amount(income)
        tds = to_amount(tds_deducted)
        _, standard_deduction, _, _ = REGIME_RULES[regime]

        taxable_income = max(income - standard_deduction - to_amount(deductions), 0)
        _, _, _, total_tax = TaxService.compute_tax(taxable_income, regime)
        payable = max(total_tax - tds, 0)

        instalments = []
        previous = 0.0
        for due, percentage in ADVANCE_TAX_INSTALMENTS:
            cumulative = payable * percentage / 100 if payable >= ADVANCE_TAX_THRESHOLD else 0.0
            instalments.append({
                'dueDate': due,
                'percentage': percentage,
                'amount': cumulative - previous,
                'cumulative': cumulative,
            })
            previous = cumulative

        return {
            'grossIncome': income,
            'taxableIncome': taxable_income,
            'totalTax': total_tax,
            'tdsDeducted': tds,
            'advanceTaxPayable': payable,
            'liable': payable >= ADVANCE_TAX_THRESHOLD,
            'instalments': instalments,
        }

    @staticmethod
    def tds(category, amount=0, pan_available=True, annual_salary=0, deductions=0,
            seller_pan_available=True):
        """TDS on a payment of the given category"""
        rule = TDS_CATEGORIES.get(category)
        if rule is None:
            raise ValidationError(f'Unknown TDS category: {category}')

        gross = to_amount(amount)
        below_threshold = False

        if rule['rate'] is None:
            salary = to_amount(annual_salary)
            taxable_income = max(salary - REGIME_RULES['new'][1] - to_amount(deductions), 0)
            _, _, _, annual_tax = TaxService.compute_tax(taxable_income, 'new')
            monthly = annual_tax / 12
            return {
                'category': category,
                'section': rule['section'],
                'annualSalary': salary,
                'taxableIncome': taxable_income,
                'annualTax': annual_tax,
                'tdsAmount': monthly,
                'tdsRate': annual_tax / salary * 100 if salary > 0 else 0.0,
                'grossAmount': salary / 12,
                'netAmount': salary / 12 - monthly,
                'isPropertyBelow50L': False,
            }

        if category == 'property':
            if gross < PROPERTY_TDS_THRESHOLD:
                rate = 0
                below_threshold = True
            else:
                rate = rule['rate'] if to_bool(seller_pan_available, True) else NO_PAN_RATE
        else:
            rate = rule['rate']
            if not to_bool(pan_available, True):
                rate = max(NO_PAN_RATE, rate)

        tds_amount = gross * rate / 100
        return {
            'category': category,
            'section': rule['section'],
            'grossAmount': gross,
            'tdsRate': rate,
            'tdsAmount': tds_amount,
            'netAmount': gross - tds_amount,
            'isPropertyBelow50L': below_threshold,
        }

    @staticmethod
    def holding_months(purchase_date, sale_date):
        """Calendar month difference (day of month ignored)"""
        return (sale_date.year - purchase_date.year) * 12 + (sale_date.month - purchase_date.month)

    @staticmethod
    def capital_gains(asset_type, purchase_price, sale_price, purchase_date, sale_date,
                      indexation=False):
        if asset_type not in ASSET_TYPES:
            raise ValidationError(f'Unknown asset type: {asset_type}')
        purchase = to_amount(purchase_price)
        sale = to_amount(sale_price)
        bought = to_date(purchase_date, 'purchaseDate')
        sold = to_date(sale_date, 'saleDate')
        if sold < bought:
            raise ValidationError('Sale date cannot be before purchase date')

        months = TaxService.holding_months(bought, sold)
        if asset_type == 'equity':
            long_term = months >= 12
            rate = 12.5 if long_term else 20
        elif asset_type in ('property', 'gold'):
            long_term = months >= 24
            rate = 12.5 if long_term else 30
        else:
            # Debt funds: slab rate, no long-term benefit
            long_term = False
            rate = 30

        cost = purchase
        indexed = to_bool(indexation) and long_term and asset_type == 'property'
        if indexed:
            cost = purchase * INDEXATION_INFLATION ** (months / 12)

        gain = sale - cost
        tax_amount = max(gain * rate / 100, 0)
        return {
            'assetType': asset_type,
            'holdingMonths': months,
            'holdingPeriod': 'long-term' if long_term else 'short-term',
            'indexedCost': cost if indexed else None,
            'capitalGain': gain,
            'taxRate': rate,
            'taxAmount': tax_amount,
            'netProceeds': sale - tax_amount,
        }

    @staticmethod
    def emi(principal, annual_rate, tenure, tenure_type='months'):
        """Equated monthly instalment"""
        principal = to_amount(principal)
        rate = to_amount(annual_rate)
        months = to_amount(tenure)
        if tenure_type == 'years':
            months *= 12
        elif tenure_type != 'months':
            raise ValidationError(f'Unknown tenure type: {tenure_type}')

        if months <= 0:
            return {'emi': 0.0, 'totalAmount': 0.0, 'totalInterest': 0.0, 'principalAmount': principal}

        monthly_rate = rate / 12 / 100
        if monthly_rate == 0:
            emi = principal / months
        else:
            try:
                growth = (1 + monthly_rate) ** months
            except OverflowError:
                raise ValidationError('Tenure too long')
            emi = principal * monthly_rate * growth / (growth - 1)

        total = emi * months
        return {
            'emi': emi,
            'totalAmount': total,
            'totalInterest': total - principal,
            'principalAmount': principal,
        }
