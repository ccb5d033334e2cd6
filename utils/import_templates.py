# utils/import_templates.py
"""
Downloadable example files for the three import formats
The column headers here are the exact headers the importer recognizes
"""

import io

import pandas as pd

TEMPLATE_COLUMNS = {
    'employees': ['Email', 'First Name', 'Last Name', 'Department', 'Position', 'Hire Date'],
    'training': ['Employee Email', 'Course Title', 'Assigned Date', 'Due Date', 'Priority'],
    'qms': ['Title', 'Description', 'Category', 'Planned Start Date', 'Planned End Date',
            'Responsible Person Email', 'Year', 'Quarter', 'Priority'],
}

TEMPLATE_ROWS = {
    'employees': [
        ['john.doe@company.com', 'John', 'Doe', 'Engineering', 'Software Engineer', '2023-01-15'],
        ['jane.smith@company.com', 'Jane', 'Smith', 'Marketing', 'Marketing Manager', '2023-02-01'],
        ['mike.johnson@company.com', 'Mike', 'Johnson', 'Sales', 'Sales Representative', '2023-03-10'],
    ],
    'training': [
        ['john.doe@company.com', 'Security Awareness Training', '2024-01-01', '2024-12-31', 'high'],
        ['jane.smith@company.com', 'Data Privacy & GDPR', '2024-01-15', '2024-06-15', 'high'],
        ['mike.johnson@company.com', 'Leadership Development', '2024-02-01', '2024-08-01', 'medium'],
    ],
    'qms': [
        ['Document Control Update', 'Update document control procedures', 'process',
         '2025-01-01', '2025-03-31', 'john.doe@company.com', 2025, 1, 'high'],
        ['Risk Assessment Review', 'Annual risk assessment review', 'system',
         '2025-04-01', '2025-06-30', 'jane.smith@company.com', 2025, 2, 'medium'],
        ['Training Program Overhaul', 'Redesign training programs', 'process',
         '2025-07-01', '2025-09-30', 'mike.johnson@company.com', 2025, 3, 'high'],
    ],
}

TEMPLATE_FILENAMES = {
    'employees': 'employee_template',
    'training': 'training_template',
    'qms': 'qms_template',
}

INSTRUCTIONS = {
    'employees': [
        "EMPLOYEE IMPORT TEMPLATE",
        "",
        "REQUIRED: Email, First Name, Last Name",
        "OPTIONAL: Department (default General), Position (default Employee), Hire Date",
        "Existing employees are matched by email and updated.",
    ],
    'training': [
        "TRAINING ASSIGNMENT IMPORT TEMPLATE",
        "",
        "REQUIRED: Employee Email, Course Title, Assigned Date, Due Date",
        "OPTIONAL: Priority (low, medium, high; anything else becomes medium)",
        "Employee Email must belong to an employee that is already imported.",
    ],
    'qms': [
        "QMS UPDATE PLAN IMPORT TEMPLATE",
        "",
        "REQUIRED: Title, Category, Planned Start Date, Planned End Date",
        "OPTIONAL: Description, Responsible Person Email, Year, Quarter (1-4), Priority",
        "A Responsible Person Email, when given, must be a valid email of an existing employee.",
    ],
}

DATE_NOTE = "Dates: use YYYY-MM-DD (Excel date cells are also accepted)."


def template_frame(kind: str) -> pd.DataFrame:
    """Example rows for one template kind. Raises KeyError for unknown kinds"""
    return pd.DataFrame(TEMPLATE_ROWS[kind], columns=TEMPLATE_COLUMNS[kind])


def build_template_csv(kind: str) -> io.BytesIO:
    output = io.BytesIO()
    output.write(template_frame(kind).to_csv(index=False).encode('utf-8'))
    output.seek(0)
    return output


def build_template_xlsx(kind: str) -> io.BytesIO:
    """
    Build a formatted workbook. The data sheet comes first because the
    importer only reads the first sheet.
    """
    df_template = template_frame(kind)
    instructions = INSTRUCTIONS[kind] + ["", DATE_NOTE,
                                         "Only the first sheet of a workbook is imported."]

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        workbook = writer.book
        header_format = workbook.add_format({
            'bold': True,
            'bg_color': '#4CAF50',
            'font_color': 'white',
            'border': 1
        })

        # Sheet 1: Data
        df_template.to_excel(writer, sheet_name='Data', index=False)
        worksheet = writer.sheets['Data']
        for col_num, col_name in enumerate(df_template.columns):
            worksheet.write(0, col_num, col_name, header_format)
            worksheet.set_column(col_num, col_num, max(15, len(col_name) + 4))

        if 'Priority' in df_template.columns:
            col = df_template.columns.get_loc('Priority')
            worksheet.data_validation(1, col, 1000, col, {
                'validate': 'list',
                'source': ['low', 'medium', 'high'],
                'error_title': 'Invalid Priority',
                'error_message': 'Priority must be low, medium or high'
            })

        # Sheet 2: Instructions
        df_instructions = pd.DataFrame(instructions, columns=['Instructions'])
        df_instructions.to_excel(writer, sheet_name='Instructions', index=False)
        writer.sheets['Instructions'].set_column('A:A', 90)

    output.seek(0)
    return output
