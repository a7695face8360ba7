from prizekiosk.controller import DEFAULT_WEIGHTS, KioskStores, LotteryController
from prizekiosk.db.engine import get_sessionmaker, make_engine
from prizekiosk.models import Base


def main() -> None:
    """Seed the development database with a freshly reset kiosk."""
    engine = make_engine()

    # Drop and recreate all tables so stale records from earlier runs vanish.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    controller = LotteryController(KioskStores.from_sessionmaker(Session))
    controller.reset_all()
    controller.update_params(threshold=3, beta=0.15, mcap=2.0)
    controller.update_weights(DEFAULT_WEIGHTS)
    controller.update_targets(
        controller.config.gain_targets, controller.config.lose_names
    )

    for row in controller.prob_rows(visits=3):
        print(f"{row.prize}: stock={row.stock} prob={row.probability:.2f}%")
    print("Development database seeded.")


if __name__ == "__main__":
    main()
