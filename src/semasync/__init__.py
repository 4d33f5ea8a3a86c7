"""semasync: mirror a Semacaulk contract's InsertIdentity log stream."""

__version__ = "0.1.0"
