"""
Demo: Run the analyzer on the example forms and output the reports.
"""

from formengine.analyzer import analyze_form
from formengine.examples import (
    build_example_licence_form,
    build_example_passport_form,
    build_example_pizza_form,
)
from formengine.serialization import form_to_yaml


def print_report(report):
    """Pretty-print a FormReport."""
    print()
    print("=" * 70)
    print(f"FORM ANALYSIS REPORT: {report.form_name}")
    print("=" * 70)
    print()

    print("📊 BASIC METRICS")
    print(f"  Total Pages:           {report.total_pages}")
    print(f"  Total Links:           {report.total_links}")
    print(f"  Total Components:      {report.total_components}")
    print(f"  Total Conditions:      {report.total_conditions}")
    print(f"  Total Lists:           {report.total_lists}")
    print()

    print("📈 CONDITION ANALYSIS")
    print(f"  Undefined Conditions:  {len(report.undefined_conditions)}")
    if report.undefined_conditions:
        print(f"    {sorted(report.undefined_conditions)}")
    print(f"  Unused Conditions:     {len(report.unused_conditions)}")
    if report.unused_conditions:
        print(f"    {sorted(report.unused_conditions)}")
    print(f"  Unknown Fields:        {sorted(report.undefined_fields) or 'None'}")
    print()

    if report.condition_usage:
        print("  Condition Usage:")
        for name, count in sorted(report.condition_usage.items()):
            print(f"    {name}: {count} reference(s)")
        print()

    print("🔗 PAGE GRAPH")
    print(f"  Start Page:            {report.start_page}")
    print(f"  Exit Points:           {report.exit_points}")
    print(f"  Stale Links:           {report.stale_links or 'None'}")
    print(f"  Unreachable Pages:     {sorted(report.unreachable_pages) or 'None'}")
    print(f"  Has Cycles:            {'YES' if report.has_cycles else 'NO'}")
    if report.has_cycles and report.cycle_example:
        print(f"    Example: {' -> '.join(report.cycle_example)}")
    print()

    print("🧩 COMPONENTS")
    print(f"  Unknown Lists:         {sorted(report.undefined_lists) or 'None'}")
    print(f"  Duplicate Keys:        {sorted(report.duplicate_keys) or 'None'}")
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Form looks clean!")
    print()


if __name__ == "__main__":
    forms = [
        build_example_passport_form(),
        build_example_pizza_form(),
        build_example_licence_form(),
    ]

    for form in forms:
        print_report(analyze_form(form))

    # Also save to YAML for inspection
    yaml_str = form_to_yaml(forms[0])
    with open("example_form_output.yaml", "w") as f:
        f.write(yaml_str)
    print("✅ Form exported to example_form_output.yaml")
