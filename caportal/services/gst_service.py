"""GST calculators"""
import math
from caportal.exceptions import ValidationError
from caportal.utils.validators import to_amount, to_bool, to_date

REGULAR_RATE = 0.18
COMPOSITION_RATES = {'trading': 1, 'manufacturing': 1, 'services': 6}
COMPOSITION_TURNOVER_LIMIT = 15000000

INTEREST_RATE = 18  # % p.a.
# return type -> (fee per day, cap)
LATE_FEES = {
    'GSTR-3B': (100, 5000),
    'GSTR-1': (200, 10000),
    'GSTR-9': (200, None),
}

RCM_CATEGORIES = {
    'legal':       {'name': 'Legal Services (Advocate)', 'rate': 18},
    'gta':         {'name': 'GTA Services (Unregistered)', 'rate': 5},
    'security':    {'name': 'Security Services', 'rate': 18},
    'sponsorship': {'name': 'Sponsorship Services', 'rate': 18},
    'import':      {'name': 'Import of Services', 'rate': 18},
    'director':    {'name': 'Director Services (Company)', 'rate': 18},
    'recovery':    {'name': 'Recovery Agent Services', 'rate': 18},
    'arbitral':    {'name': 'Arbitral Tribunal Services', 'rate': 18},
    'government':  {'name': 'Government Services', 'rate': 18},
    'lottery':     {'name': 'Lottery/Betting/Gambling', 'rate': 40},
}

ECOMMERCE_TCS_RATE = 1

FFMC_SAC = '997157'
FFMC_GST_RATE = 18
FFMC_CURRENCIES = ('USD', 'EUR', 'GBP', 'JPY')


def _split(total_gst):
    return {'cgst': total_gst / 2, 'sgst': total_gst / 2, 'igst': total_gst}


class GstService:

    @staticmethod
    def calculate(amount, rate, mode='exclusive'):
        """Split an amount into base value and GST"""
        amount = to_amount(amount)
        rate = to_amount(rate)
        if mode == 'exclusive':
            base = amount
            total_gst = amount * rate / 100
            final = amount + total_gst
        elif mode == 'inclusive':
            final = amount
            base = amount * 100 / (100 + rate)
            total_gst = amount - base
        else:
            raise ValidationError(f'Unknown calculation type: {mode}')

        result = {'baseAmount': base, 'gstRate': rate, 'totalGST': total_gst, 'finalAmount': final}
        result.update(_split(total_gst))
        return result

    @staticmethod
    def composition(turnover, purchases=0, expenses=0, business_type='trading'):
        """Compare the composition scheme against regular GST at 18%"""
        if business_type not in COMPOSITION_RATES:
            raise ValidationError(f'Unknown business type: {business_type}')
        turnover = to_amount(turnover)
        output_tax = turnover * REGULAR_RATE
        input_credit = (to_amount(purchases) + to_amount(expenses)) * REGULAR_RATE
        net_regular = max(output_tax - input_credit, 0)

        rate = COMPOSITION_RATES[business_type]
        composition_tax = turnover * rate / 100
        savings = net_regular - composition_tax

        eligible = turnover <= COMPOSITION_TURNOVER_LIMIT
        if not eligible:
            recommendation = 'Not eligible for Composition Scheme (Turnover exceeds ₹1.5 Cr)'
        elif savings > 0:
            recommendation = 'Composition Scheme is beneficial'
        elif savings < 0:
            recommendation = 'Regular Scheme is beneficial'
        else:
            recommendation = 'Both schemes have similar tax liability'

        return {
            'regularScheme': {'outputTax': output_tax, 'inputCredit': input_credit, 'netTax': net_regular},
            'compositionScheme': {'tax': composition_tax, 'rate': rate},
            'savings': savings,
            'eligible': eligible,
            'recommendation': recommendation,
        }

    @staticmethod
    def interest_and_late_fee(tax_amount, due_date, payment_date, return_type='GSTR-3B'):
        if return_type not in LATE_FEES:
            raise ValidationError(f'Unknown return type: {return_type}')
        tax = to_amount(tax_amount)
        due = to_date(due_date, 'dueDate')
        paid = to_date(payment_date, 'paymentDate')

        delay_days = max(math.ceil((paid - due).total_seconds() / 86400), 0)
        interest = tax * INTEREST_RATE * delay_days / (365 * 100)

        per_day, cap = LATE_FEES[return_type]
        late_fee = delay_days * per_day
        if cap is not None:
            late_fee = min(late_fee, cap)

        return {
            'taxAmount': tax,
            'delayDays': delay_days,
            'interestRate': INTEREST_RATE,
            'interestAmount': interest,
            'lateFee': late_fee,
            'totalPayable': tax + interest + late_fee,
        }

    @staticmethod
    def rcm(amount, category, intra_state=True):
        """Reverse charge liability"""
        rule = RCM_CATEGORIES.get(category)
        if rule is None:
            raise ValidationError(f'Unknown RCM category: {category}')
        base = to_amount(amount)
        total_gst = base * rule['rate'] / 100
        if to_bool(intra_state, True):
            cgst = sgst = total_gst / 2
            igst = 0.0
        else:
            cgst = sgst = 0.0
            igst = total_gst
        return {
            'category': rule['name'],
            'baseAmount': base,
            'gstRate': rule['rate'],
            'cgst': cgst,
            'sgst': sgst,
            'igst': igst,
            'totalGST': total_gst,
            'totalAmount': base + total_gst,
        }

    @staticmethod
    def ecommerce_tcs(net_value, platform_fee=0):
        net = to_amount(net_value)
        fee = to_amount(platform_fee)
        tcs = net * ECOMMERCE_TCS_RATE / 100
        return {
            'netTaxableValue': net,
            'tcsRate': ECOMMERCE_TCS_RATE,
            'tcsAmount': tcs,
            'platformFee': fee,
            'totalDeduction': tcs + fee,
            'netPayment': net - tcs - fee,
        }

    @staticmethod
    def ffmc_rbi_rate(amount, rbi_rate, actual_rate, currency='USD', transaction_type='buying'):
        """
        Value of supply for money changing (SAC 997157) from the RBI
        reference rate, Rule 32(2)(a). The deemed minimum is 1% of the
        RBI reference value.
        """
        currency = (currency or '').upper()
        if currency not in FFMC_CURRENCIES:
            raise ValidationError(f'Unsupported currency: {currency}')
        if transaction_type not in ('buying', 'selling'):
            raise ValidationError(f'Unknown transaction type: {transaction_type}')
        amount, rbi, actual = to_amount(amount), to_amount(rbi_rate), to_amount(actual_rate)
        if amount <= 0 or rbi <= 0 or actual <= 0:
            raise ValidationError('Amount, RBI rate and actual rate must be positive')

        reference_value = amount * rbi
        transaction_value = amount * actual
        margin = abs(reference_value - transaction_value)
        value_of_supply = max(margin, reference_value * 0.01)
        total_gst = value_of_supply * FFMC_GST_RATE / 100

        result = {
            'method': 'rbi-rate',
            'sac': FFMC_SAC,
            'currency': currency,
            'transactionValue': transaction_value,
            'rbiReferenceValue': reference_value,
            'valueOfSupply': value_of_supply,
            'marginPercentage': margin / reference_value * 100,
            'gstRate': FFMC_GST_RATE,
            'totalGST': total_gst,
            'netPayable': transaction_value + total_gst,
        }
        result.update(_split(total_gst))
        return result

    @staticmethod
    def ffmc_slab(gross_amount):
        """Value of supply by the slab method, Rule 32(2)(b)"""
        gross = to_amount(gross_amount)
        if gross <= 0:
            raise ValidationError('Gross amount must be positive')

        if gross <= 100000:
            value_of_supply = max(gross * 0.01, 250)
            slab = 'Up to Rs. 1,00,000'
        elif gross <= 1000000:
            value_of_supply = 1000 + (gross - 100000) * 0.005
            slab = 'Rs. 1,00,001 to Rs. 10,00,000'
        else:
            value_of_supply = min(5500 + (gross - 1000000) * 0.001, 60000)
            slab = 'Above Rs. 10,00,000'

        total_gst = value_of_supply * FFMC_GST_RATE / 100
        result = {
            'method': 'slab-based',
            'sac': FFMC_SAC,
            'grossAmount': gross,
            'slab': slab,
            'valueOfSupply': value_of_supply,
            'gstRate': FFMC_GST_RATE,
            'totalGST': total_gst,
            'netPayable': gross + total_gst,
        }
        result.update(_split(total_gst))
        return result
