from timecard.models.business import Business, BusinessEmployee
from timecard.models.confirmed_hours import ConfirmedHours
from timecard.models.employee import Employee
from timecard.models.employee_rate import EmployeeRate
from timecard.models.payment_record import PaymentRecord
from timecard.models.schedule import Shift, WeeklySchedule

__all__ = [
    "Business",
    "BusinessEmployee",
    "ConfirmedHours",
    "Employee",
    "EmployeeRate",
    "PaymentRecord",
    "Shift",
    "WeeklySchedule",
]
