"""Console front end for the pre-order storefront.

Usage:
    python -m storefront.main
"""

import asyncio

from loguru import logger

from .config import get_settings
from .enums import CheckoutPhase
from .logging import setup_logging
from .pricing import SERVICE_FEE_RATE, format_amount
from .session import StorefrontSession

HELP = """\
Commands:
  menu              show the menu
  add <id>          add one item to the cart
  remove <id>       remove an item from the cart
  qty <id> <n>      set the quantity of an item (0 removes it)
  cart              show the cart
  clear             empty the cart
  checkout          enter your details and send the pre-order
  quit              leave the store"""


def print_menu(session: StorefrontSession) -> None:
    if session.menu.error:
        print(session.menu.error)
        return
    for category in session.menu.categories:
        print(f"\n== {category.title} ==")
        for item in category.items:
            label = item.price or f"${format_amount(item.price_value)}"
            print(f"  [{item.item_id}] {item.name} - {label}")
            if item.description:
                print(f"      {item.description}")
    print()


def print_cart(session: StorefrontSession) -> None:
    if session.cart.is_empty:
        print("Your cart is empty. Add some items from the menu to get started.")
        return
    print(f"\nYour Pre-order ({session.badge_count} items)")
    for entry in session.cart.items:
        print(
            f"  {entry.quantity}x {entry.name} "
            f"@ ${format_amount(entry.unit_price)} = ${format_amount(entry.line_total)}"
        )
    totals = session.totals()
    print(f"  Subtotal: ${format_amount(totals.subtotal)}")
    print(f"  Service Fee ({SERVICE_FEE_RATE:.0%}): ${format_amount(totals.service_fee)}")
    print(f"  Total: ${format_amount(totals.total)}")
    print()


def run_checkout(session: StorefrontSession) -> None:
    checkout = session.checkout
    if not session.begin_checkout():
        print(checkout.notice or "Checkout is not available right now.")
        return

    minimum = checkout.minimum_pickup_time().strftime("%Y-%m-%dT%H:%M")
    checkout.fill_details(
        customer_name=input("Full Name: "),
        customer_email=input("Email Address: "),
        customer_phone=input("Phone Number: "),
    )
    pickup = input(f"Requested Pickup Time (YYYY-MM-DDTHH:MM, from {minimum}): ").strip()
    if pickup:
        try:
            checkout.fill_details(pickup_time=pickup)
        except ValueError:
            print("That pickup time could not be read.")

    asyncio.run(session.submit_order())

    if checkout.phase is CheckoutPhase.COLLECTING_DETAILS:
        print(checkout.notice)
        checkout.cancel()
    elif checkout.phase is CheckoutPhase.SUCCEEDED:
        print("Pre-order Submitted! We will contact you shortly to confirm.")
        checkout.acknowledge()
    elif checkout.phase is CheckoutPhase.FAILED:
        print(checkout.notice)
        print("Your cart was kept; type 'checkout' to try again.")


def main() -> None:
    """Run the storefront CLI."""
    settings = get_settings()

    setup_logging(level=settings.log_level)
    logger.info("Starting storefront CLI")

    session = StorefrontSession.from_settings(settings)
    print("Loading our delicious menu...")
    asyncio.run(session.load_menu())
    print_menu(session)

    print("-" * 50)
    print(HELP)
    print("-" * 50)

    while True:
        try:
            user_input = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            break

        if not user_input:
            continue
        command, *args = user_input.split()
        command = command.lower()
        logger.debug("Command: {} {}", command, args)

        if command in ("quit", "exit", "q"):
            print("Goodbye!")
            break
        elif command == "menu":
            print_menu(session)
        elif command == "add" and len(args) == 1:
            if session.add_to_cart(args[0]) is None:
                print(f"No menu item with id {args[0]!r}.")
            else:
                print_cart(session)
        elif command == "remove" and len(args) == 1:
            session.cart.remove(args[0])
            print_cart(session)
        elif command == "qty" and len(args) == 2 and args[1].lstrip("-").isdigit():
            session.cart.update_quantity(args[0], int(args[1]))
            print_cart(session)
        elif command == "cart":
            session.open_cart()
            print_cart(session)
        elif command == "clear":
            session.cart.clear()
            print_cart(session)
        elif command == "checkout":
            session.open_cart()
            run_checkout(session)
            session.close_cart()
        else:
            print(HELP)

    session.close()
    logger.info("Storefront CLI session ended")


if __name__ == "__main__":
    main()
