from inbound_planner.models.domain import ContainerSize, ItemInfo
from inbound_planner.services.packing import estimate_containers, estimate_for_quantity, produce_bucket

CRATES = [
    ContainerSize(key="small", usable_liters=20, max_weight_kg=15),
    ContainerSize(key="large", usable_liters=60, max_weight_kg=25),
]


def _item(type_: str = "tomato", category: str = "vegetable", variety: str | None = None) -> ItemInfo:
    return ItemInfo(id="item-1", name=type_.title(), category=category, type=type_, variety=variety)


def test_produce_bucket_classification():
    assert produce_bucket(_item("lettuce")) == "leafy"
    assert produce_bucket(_item("strawberry", category="fruit")) == "berries"
    assert produce_bucket(_item("orange", category="fruit")) == "citrus"
    assert produce_bucket(_item("carrot")) == "roots"
    assert produce_bucket(_item("kohlrabi")) == "generic"


def test_smallest_container_that_fits_in_one():
    # tomatoes: small holds min(20*0.6, 15) = 12 kg, large min(36, 25) = 25 kg
    estimate = estimate_for_quantity(_item(), 10, CRATES)
    assert estimate is not None
    assert estimate.container_key == "small"
    assert estimate.containers_needed == 1
    assert estimate.limiting_factor == "volume"


def test_largest_container_when_nothing_fits_in_one():
    estimate = estimate_for_quantity(_item(), 60, CRATES)
    assert estimate is not None
    assert estimate.container_key == "large"
    assert estimate.capacity_kg_per_container == 25
    assert estimate.limiting_factor == "weight"
    assert estimate.containers_needed == 3


def test_missing_data_yields_zero():
    assert estimate_containers(None, 40, CRATES) == 0
    assert estimate_containers(_item(), 40, []) == 0
    assert estimate_containers(_item(), 0, CRATES) == 0
    assert estimate_containers(_item(), -5, CRATES) == 0
