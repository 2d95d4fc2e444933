from faker import Faker
from faker.providers import BaseProvider


class PracticeProvider(BaseProvider):
    """
    Demo data for an Indian CA practice
    """

    blog_topics = [
        'GST Council Recommendations', 'New Tax Regime Explained', 'Advance Tax Due Dates',
        'TDS on Rent', 'E-invoicing Thresholds', 'Capital Gains After Budget',
        'ITR Filing Checklist', 'Composition Scheme Limits', 'RBI Guidelines for FFMCs',
        'Automating Bank Reconciliations',
    ]

    resource_titles = [
        'GST Registration Checklist', 'ITR Document Checklist', 'Rent Agreement Template',
        'Form 15G Guide', 'TDS Rate Chart', 'Partnership Deed Format', 'Invoice Template',
    ]

    tool_names = [
        'PDF Redactor', 'Bank Statement Parser', 'GSTR-2B Matcher', 'Invoice Extractor',
        'Form 26AS Reader', 'Ledger Cleaner',
    ]

    services = [
        'Income Tax Return', 'GST Compliance', 'Audit', 'FFMC Compliance',
        'Company Incorporation', 'Bookkeeping', 'Tax Planning',
    ]

    def blog_title(self):
        return f'{self.random_element(self.blog_topics)} {self.generator.year()}'

    def resource_title(self):
        return self.random_element(self.resource_titles)

    def tool_name(self):
        return self.random_element(self.tool_names)

    def client_services(self):
        return self.random_elements(self.services, length=self.random_int(1, 3), unique=True)


fake = Faker('en_IN')
fake.add_provider(PracticeProvider)
