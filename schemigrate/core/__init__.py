"""Values, paths, errors and settings shared across schemigrate."""
