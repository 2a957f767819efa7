from pathlib import Path
from typing import Optional

from station_libs.config_models.station_models import StationDefinition
from station_libs.point_index.errors import StationDefinitionError
from station_libs.point_index.station_tree import StationTree, load_station_definition


class StationValidator:
    """Validates the station definition YAML and returns the built StationTree."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)

    def validate(self) -> Optional[StationTree]:
        print(f"\n--- Validating Station Definition: {self.file_path} ---")
        try:
            definition: StationDefinition = load_station_definition(self.file_path)
            tree = StationTree(definition)
        except StationDefinitionError as e:
            print("❌ Station definition validation failed!")
            print("   Error details:")
            print(f"   {e}")
            return None

        print("✅ Station Definition Validation Successful!")
        print(f"   Station: {definition.name} (version {definition.version})")
        print(f"   Components Found: {len(tree)}")
        print(f"   Custom Types: {len(definition.types)}")
        return tree
