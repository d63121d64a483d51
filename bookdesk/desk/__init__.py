from bookdesk.desk.booking_desk import BookingDesk, DeskMode
from bookdesk.desk.bulk_editor import BulkEditor
from bookdesk.desk.selection import SelectionSet
from bookdesk.desk.workflow import CalendarWorkflow, SlotRow

__all__ = [
    "BookingDesk",
    "DeskMode",
    "BulkEditor",
    "SelectionSet",
    "CalendarWorkflow",
    "SlotRow",
]
