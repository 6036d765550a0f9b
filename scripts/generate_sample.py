import logging, sys, os

# Add the parent directory to the path so we can import shiftroster
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shiftroster.exceptions import RosterError
from shiftroster.loader import load_problem
from shiftroster.output_formatter import (
    analyze_empty_slots, calculate_worker_statistics, distribution_warnings, generate_rota_table, save_outputs,
)
from shiftroster.solver import generate_schedule

config_path = sys.argv[1] if len(sys.argv) > 1 else "data/sample_config.yml"
submissions_path = sys.argv[2] if len(sys.argv) > 2 else "data/sample_submissions.csv"
out_dir = sys.argv[3] if len(sys.argv) > 3 else "out"

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

problem = load_problem(config_path, submissions_path)
workers = [w for w in problem.workers if w.approved]
print(f"Generating roster for {len(workers)} approved workers, period {problem.period.label if problem.period else '?'}")

try:
    result = generate_schedule(problem)
except RosterError as e:
    print(f"Generation failed: {e}")
    sys.exit(1)

print(f"\n{result.message}")
print(f"Possible variations: {result.variations.estimated}")
print(f"Shifts filled: {result.total_assigned_shifts}/{result.total_possible_shifts}")

print("\n==================================================")
print("ROTA")
print("==================================================\n")
print(generate_rota_table(result).to_string(index=False))

print("\n==================================================")
print("WORKER DISTRIBUTION")
print("==================================================\n")
print(calculate_worker_statistics(result.grid, result.workers, problem.config).to_string(index=False))

warnings = distribution_warnings(result.grid, result.workers, problem.config)
for label in warnings["night_overflow"]:
    print(f"  WARNING: {label} over the night cap")
for label in warnings["missing_morning"]:
    print(f"  NOTE: {label} has no morning shift")

empty = analyze_empty_slots(result.grid, result.workers, problem.config)
if empty["total_empty"]:
    print(f"\n{empty['total_empty']} empty shifts ({empty['critical_empty']} night/morning)")
    for shift, days in empty["by_shift"].items():
        if days:
            print(f"  {shift}: days {', '.join(str(d) for d in days)}")
    if empty["small_team"] and empty["mostly_evenings"]:
        print("  Small team: remaining evening gaps are expected")

paths = save_outputs(result, out_dir)
print(f"\nSaved {paths['rota']} and {paths['worker_stats']}")
