"""TrustTrack relay - on-chain product provenance stages."""
