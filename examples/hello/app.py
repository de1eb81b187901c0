"""Hello World -- the smallest strata program.

Parse a template from a string and render it with variables. No loader,
no files.

Run:
    python app.py
"""

from strata import Environment

env = Environment(globals={"punctuation": "!"})

template = env.from_string("Hello, {{ name }}{{ punctuation }}")

output = template.render(name="World")


def main() -> None:
    print(output)
    print()

    # Render data shadows globals for one render only
    for name, punctuation in [("strata", "."), ("Python", "?")]:
        print(template.render(name=name, punctuation=punctuation))
    print(template.render(name="again"))


if __name__ == "__main__":
    main()
