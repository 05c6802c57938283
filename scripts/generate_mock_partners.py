import csv
import random
from datetime import datetime, timedelta

# State codes used as service zones at checkout
ZONES = ["MH", "KA", "DL", "TN", "WB"]


def generate_mock_partners(filename="mock_partners_25.csv", count=25):
    # Registrations spread over a year so ring order is not insertion order
    base_date = datetime(2025, 1, 1, 9, 0, 0)

    with open(filename, mode='w', newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["partner_id", "company_name", "service_zone", "registered_at"])

        for i in range(count):
            partner_id = f"PTN-{str(i+1).zfill(3)}"
            company_name = f"Bloom Courier {i+1}"

            # Zones are typed by hand in the partner application form: mixed case, stray spaces
            zone = random.choice(ZONES)
            if random.random() < 0.2:
                zone = f" {zone.lower()} "

            # 10% never picked a zone and can't receive orders
            if random.random() < 0.1:
                zone = ""

            registered_at = base_date + timedelta(days=random.randint(0, 365), minutes=random.randint(0, 600))

            writer.writerow([partner_id, company_name, zone, registered_at.isoformat()])

    print(f"Successfully generated {count} mock partners into '{filename}'.")

if __name__ == "__main__":
    generate_mock_partners()
