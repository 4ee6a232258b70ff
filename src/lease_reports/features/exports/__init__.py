"""Document export endpoints for lease-reports

Customers can be downloaded as an Excel workbook and payments as a
paginated PDF report. Both require a bearer credential and render complete
documents even when there is no data."""
