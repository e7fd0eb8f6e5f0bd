from wallgrab.main import main

if __name__ == "__main__":
    # Same as the ``wallgrab`` console script; flags may also come from
    # WALLGRAB_* environment variables.
    main()
